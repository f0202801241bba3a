def register_routes(app):
    """Register all API blueprints with the Flask app"""

    # Import route modules
    from sportclub.routes.auth import auth_routes
    from sportclub.routes.clubs import club_routes
    from sportclub.routes.users import user_routes
    from sportclub.routes.categories import category_routes
    from sportclub.routes.coaches import coach_routes
    from sportclub.routes.sportifs import sportif_routes
    from sportclub.routes.teams import team_routes

    # Sessions and follow-up
    from sportclub.routes.trainings import training_routes
    from sportclub.routes.schedules import schedule_routes
    from sportclub.routes.annotations import annotation_routes
    from sportclub.routes.evaluations import evaluation_routes
    from sportclub.routes.stats import stats_routes

    # Payments and communication
    from sportclub.routes.licences import licence_routes
    from sportclub.routes.stages import stage_routes
    from sportclub.routes.messages import message_routes
    from sportclub.routes.announcements import announcement_routes

    # Register blueprints
    app.register_blueprint(auth_routes)
    app.register_blueprint(club_routes)
    app.register_blueprint(user_routes)
    app.register_blueprint(category_routes)
    app.register_blueprint(coach_routes)
    app.register_blueprint(sportif_routes)
    app.register_blueprint(team_routes)

    app.register_blueprint(training_routes)
    app.register_blueprint(schedule_routes)
    app.register_blueprint(annotation_routes)
    app.register_blueprint(evaluation_routes)
    app.register_blueprint(stats_routes)

    app.register_blueprint(licence_routes)
    app.register_blueprint(stage_routes)
    app.register_blueprint(message_routes)
    app.register_blueprint(announcement_routes)

    return app
