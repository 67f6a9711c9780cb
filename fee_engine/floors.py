"""
Floor Grouping

Unit codes encode their floor: numeric codes are floor digits followed by a
single unit index ("114" is unit 4 on floor "11"), while commercial and other
special groupings use a reserved leading letter ("C1", "O3").
"""

# C = commercial/basement grouping, O = other/ground grouping
RESERVED_FLOOR_MARKERS = ("C", "O")


def floor_key_of(code: str) -> str:
    """Return the floor group a unit code belongs to."""
    if code[:1] in RESERVED_FLOOR_MARKERS:
        return code[0]
    return code[:-1]
