"""
Initialize the FamilyConnect database and optionally a first site admin.
Run this script once to set up a fresh database:

    python init_db.py
    python init_db.py --admin-email you@example.com --admin-password 'S3curePassword'

Existing deployments should use ``flask db upgrade`` instead.
"""
import click

from app import create_app
from extensions import db


@click.command()
@click.option('--config', 'config_name', default='development', show_default=True,
              help='Configuration name from config.py')
@click.option('--admin-email', default=None, help='Create a site admin with this email')
@click.option('--admin-password', default=None, help='Password for the site admin')
def init_db(config_name, admin_email, admin_password):
    """Initialize the database"""
    app = create_app(config_name)

    with app.app_context():
        click.echo("Creating database tables...")
        db.create_all()
        click.echo("✓ Database tables created successfully!")
        click.echo(f"Database location: {app.config['SQLALCHEMY_DATABASE_URI']}")

        click.echo("\nTables created:")
        for table in db.metadata.sorted_tables:
            click.echo(f"  - {table.name}")

        if admin_email:
            _create_site_admin(admin_email, admin_password)


def _create_site_admin(email, password):
    from models.users import User
    from blueprints.auth.forms import validate_password_strength

    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        click.echo(f"User {email} already exists; use 'flask site-admin grant' instead.")
        return
    if not password:
        raise click.UsageError('--admin-password is required with --admin-email')
    is_valid, error = validate_password_strength(password)
    if not is_valid:
        raise click.UsageError(error)

    user = User(email=email, is_active=True, is_site_admin=True)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    click.echo(f"✓ Site admin {email} created")


if __name__ == '__main__':
    init_db()
