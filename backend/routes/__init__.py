# routes/__init__.py
"""
Blueprint registration helper
"""

def register_blueprints(app):
    """Register all application blueprints"""
    from routes.health import health_bp
    from routes.auth import auth_bp
    from routes.songs import songs_bp
    from routes.search import search_bp
    from routes.playlists import playlists_bp
    from routes.admin import admin_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(songs_bp)
    app.register_blueprint(search_bp)
    app.register_blueprint(playlists_bp)
    app.register_blueprint(admin_bp)
