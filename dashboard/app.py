"""
Market Brief endpoint
Flask app serving the aggregated morning brief as JSON.
Each request runs one fresh aggregation; nothing is cached between requests.
"""

# ============ IMPORTS ============
from flask import Flask, jsonify, request
import logging
import os
import sys

# Add parent directory to path to import brief modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Load .env file explicitly (required for gunicorn)
from dotenv import load_dotenv
env_path = os.path.join(os.path.dirname(__file__), '..', '.env')
load_dotenv(env_path)

from brief.config import load_settings
from brief.response import build_response
from brief.utils.logging import setup_logging

logger = logging.getLogger(__name__)

# ============ FLASK APP SETUP ============
app = Flask(__name__)


@app.route('/healthz')
def healthz():
    return jsonify({"status": "ok"})


# ============ MARKET DATA API ============

@app.route('/api/market-data')
def api_market_data():
    """
    Headlines, market quotes, economic calendar and scraped headlines.

    Optional query parameters: ``symbolSet`` and ``freshnessWindowHours``.
    Upstream failures degrade sections to placeholder lines (still 200);
    only an internal defect returns 500.
    """
    status, body = build_response(query=request.args)
    response = jsonify(body)
    response.status_code = status
    response.headers['Cache-Control'] = 'no-store'
    return response


def run(host='0.0.0.0', port=5001, debug=False):
    setup_logging(load_settings().log_level)
    logger.info(f"Serving market brief on http://{host}:{port}/api/market-data")
    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == '__main__':
    run(debug=True)
