import time
from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from extensions import db, sentiment_gateway

health_bp = Blueprint('health', __name__)


def _check_database():
    try:
        db.session.execute(text("SELECT 1"))
        return {'status': 'UP', 'database': db.engine.dialect.name}
    except Exception as e:
        current_app.logger.error(f"Database health check failed: {e}", exc_info=True)
        return {'status': 'DOWN', 'error': str(e)}


@health_bp.route('', methods=['GET'])
def index():
    database = _check_database()
    return jsonify({
        'status': 'UP' if database['status'] == 'UP' else 'DOWN',
        'timestamp': int(time.time() * 1000),
        'database': database,
        'sentiment': {'configured': sentiment_gateway.is_configured},
    })
