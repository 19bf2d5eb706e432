from billing.routes import auth_bp, items_bp, bills_bp


def register_api_v1(app):
    """Register blueprint routes under the API version prefix."""
    app.register_blueprint(auth_bp)
    app.register_blueprint(items_bp)
    app.register_blueprint(bills_bp)
