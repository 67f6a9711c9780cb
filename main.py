from flask import Flask, request, jsonify
from flask_cors import CORS
from fee_engine import FeeProcessor
from fee_engine.processor import VALIDATION_ERRORS
import os
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Enable CORS for all routes (the property-management frontend calls the API directly)
CORS(app)

# Initialize the fee processor
processor = FeeProcessor()


@app.route("/api", methods=["GET"])
def api_info():
    """API information endpoint"""
    return jsonify({
        "status": "ok",
        "message": "Maintenance Fee Engine API",
        "version": "1.0",
        "endpoints": {
            "recalculate_fees": "/recalculate_fees [POST]",
            "redistribute_fees": "/redistribute_fees [POST]",
            "health": "/health [GET]"
        }
    }), 200


@app.route("/health", methods=["GET"])
def health():
    """Health check for monitoring"""
    return jsonify({"status": "healthy"}), 200


@app.route("/recalculate_fees", methods=["POST"])
def recalculate_fees():
    """
    Allocate common areas and distribute fees for a full unit list
    """
    return _handle(processor.process_from_dict)


@app.route("/redistribute_fees", methods=["POST"])
def redistribute_fees():
    """
    Distribute fees over already-allocated units (budget or rate change only)
    """
    return _handle(processor.redistribute_from_dict)


def _handle(operation):
    try:
        # Get input data
        input_data = request.get_json(force=True, silent=True)

        if not isinstance(input_data, dict) or not input_data:
            return jsonify({
                "error": "No input data provided",
                "status": "failed"
            }), 400

        # Log request
        unit_count = len(input_data.get("units") or [])
        logger.info(f"Recalculating fees for {unit_count} units")

        # Process through engine
        result = operation(input_data)

        for warning in result["warnings"]:
            logger.warning(f"Billing inconsistency: {warning}")

        logger.info(f"Fees recalculated: total {result['summary']['total_fees']['value']}")

        return jsonify(result), 200

    except VALIDATION_ERRORS as e:
        # Validation errors from engine (missing fields, invalid values)
        logger.error(f"Validation error: {str(e)}")
        return jsonify({
            "error": str(e),
            "status": "validation_failed"
        }), 400

    except Exception as e:
        # Unexpected errors
        logger.error(f"Processing error: {str(e)}", exc_info=True)
        return jsonify({
            "error": str(e),
            "status": "failed"
        }), 500


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=False)
