import click

from app.models import User
from app.services.access_control import OwnerStatus


def register_commands(app):
    """Register custom Flask CLI commands."""

    @app.cli.command('seed-samples')
    def seed_samples_command():
        """Insert the two sample memorials and their owner accounts."""
        from app.seeds.samples import seed_samples
        created = seed_samples()
        click.echo(f'Created {created} sample memorials')

    @app.cli.command('set-user-status')
    @click.argument('email')
    @click.argument('status')
    def set_user_status_command(email, status):
        """Change an account status (FREE, PAID, ADMIN, SUSPENDED)."""
        new_status = OwnerStatus.parse(status)
        if new_status is None:
            raise click.BadParameter(f'{status} is not one of '
                                     f'{", ".join(s.value for s in OwnerStatus)}', param_hint='STATUS')
        user = User.query.filter_by(email=email.strip().lower()).first()
        if user is None:
            raise click.ClickException(f'No account with email {email}')

        from app.routes.site_admin import change_user_status
        updated = change_user_status(user, new_status)
        click.echo(f'{user.email} is now {new_status.value} ({updated} memorials updated)')
