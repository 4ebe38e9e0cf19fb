import logging
from clinic import create_app, db

app = create_app()

if __name__ == "__main__":
    # Creates missing tables for local development; use `flask db` migrations elsewhere.
    with app.app_context():
        db.create_all()
        logging.getLogger(__name__).info("Tables created")

    app.run(debug=app.config.get("DEBUG", False))
