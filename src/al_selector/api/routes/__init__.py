from al_selector.api.routes.sessions import sessions_bp
from al_selector.api.routes.monitoring import monitoring_bp

__all__ = ['sessions_bp', 'monitoring_bp']
