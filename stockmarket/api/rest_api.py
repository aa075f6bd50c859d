"""
REST API for the stock market.

This module provides HTTP endpoints for order submission and for
read-only views of the books, the ledger, the bank and engine statistics.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, request, jsonify
from flask_cors import CORS

from ..config.settings import get_settings
from ..core.matching_engine import MatchingEngine
from .validators import validate_order_request, validate_order_side, validate_trader_id

logger = logging.getLogger(__name__)


def create_app(engine: Optional[MatchingEngine] = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        engine: Matching engine to serve (a new one by default)

    Returns:
        Configured Flask application
    """
    settings = get_settings()
    app = Flask(__name__)
    if settings.enable_cors:
        CORS(app, origins=settings.cors_origins)

    app.config['MATCHING_ENGINE'] = engine if engine is not None else MatchingEngine()

    register_routes(app)

    logger.info("REST API initialized")
    return app


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def register_routes(app: Flask) -> None:
    """Register all API routes."""
    settings = get_settings()
    matching_engine: MatchingEngine = app.config['MATCHING_ENGINE']

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'timestamp': _timestamp(),
        })

    @app.route('/orders', methods=['POST'])
    def submit_order():
        """
        Submit a new limit order.

        Request body:
        {
            "side": "buy",
            "quantity": 10,
            "price": 50.25,
            "trader_id": 7
        }
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Request body must be a JSON object'}), 400

        is_valid, error, validated_data = validate_order_request(
            data, max_quantity=settings.max_quantity, max_price=settings.max_price
        )
        if not is_valid:
            return jsonify({'error': error}), 400

        result = matching_engine.place_order(
            validated_data['side'],
            validated_data['price'],
            validated_data['quantity'],
            validated_data['trader_id'],
        )

        response_data = result.to_dict()
        response_data['bank'] = matching_engine.bank
        response_data['timestamp'] = _timestamp()

        logger.info(f"Order submitted: {result.key.sequence}")
        return jsonify(response_data), 200

    @app.route('/orderbook', methods=['GET'])
    def get_market_data():
        """Both books, best prices and the bank."""
        return jsonify(matching_engine.get_market_data()), 200

    @app.route('/orderbook/<side>', methods=['GET'])
    def get_order_book(side: str):
        """Get one book, grouped by heap level."""
        is_valid, error, order_side = validate_order_side(side)
        if not is_valid:
            return jsonify({'error': error}), 400

        response_data = matching_engine.get_book_snapshot(order_side)
        response_data['timestamp'] = _timestamp()
        return jsonify(response_data), 200

    @app.route('/ledger', methods=['GET'])
    def get_ledger():
        """Get every trader record."""
        records = matching_engine.get_ledger_snapshot()
        return jsonify({
            'records': records,
            'count': len(records),
            'timestamp': _timestamp(),
        }), 200

    @app.route('/ledger/<trader_id>', methods=['GET'])
    def get_ledger_record(trader_id: str):
        """Get one trader's record."""
        is_valid, error, tid = validate_trader_id(trader_id)
        if not is_valid:
            return jsonify({'error': error}), 400

        record = matching_engine.get_ledger_record(tid)
        if record is None:
            return jsonify({'error': 'Trader not found'}), 404

        return jsonify(record), 200

    @app.route('/bank', methods=['GET'])
    def get_bank():
        """Get the total spread captured."""
        return jsonify({
            'bank': matching_engine.bank,
            'timestamp': _timestamp(),
        }), 200

    @app.route('/statistics', methods=['GET'])
    def get_statistics():
        """Get engine statistics."""
        stats = matching_engine.get_statistics()
        if matching_engine.performance_monitor is not None:
            stats['performance'] = matching_engine.performance_monitor.get_summary()
        return jsonify(stats), 200

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors."""
        return jsonify({'error': 'Endpoint not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        """Handle 405 errors."""
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        logger.error(f"Internal server error: {str(error)}")
        return jsonify({'error': 'Internal server error'}), 500
