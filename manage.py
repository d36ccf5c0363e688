# manage.py
import sys

from sqlalchemy.engine import make_url

from app import create_app
from tracktide.database.db_manager import db

USAGE = "Usage: python manage.py [create_db|reset_db]"


def create_db():
    """Creates the database tables (create_app already runs create_all)."""
    app = create_app()
    url = make_url(app.config['SQLALCHEMY_DATABASE_URI'])
    print(f"Database ready: {url.render_as_string(hide_password=True)}")


def reset_db():
    """Drops every table and recreates the schema. All user data is lost."""
    app = create_app()
    with app.app_context():
        db.drop_all()
        db.create_all()
    print("Database tables dropped and recreated!")


COMMANDS = {
    'create_db': create_db,
    'reset_db': reset_db,
}


if __name__ == '__main__':
    if len(sys.argv) > 1:
        command = COMMANDS.get(sys.argv[1])
        if command is None:
            print(f"Unknown command: {sys.argv[1]}")
            print(USAGE)
            sys.exit(1)
        command()
    else:
        print(f"No command provided. {USAGE}")
