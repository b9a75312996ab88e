import click
from flask.cli import with_appcontext
import logging

from diabeater.errors import DiabeaterError

logger = logging.getLogger(__name__)


@click.group(name='diabeater')
def diabeater_cli():
    """DiaBeater admin console commands."""
    pass


@diabeater_cli.command('grant-admin')
@click.argument('email')
@click.option('--password', default=None, help='Create the login with this password if it does not exist yet.')
@click.option('--name', default='Admin', help='Display name for a newly created login.')
@with_appcontext
def grant_admin_command(email, password, name):
    """Give EMAIL the admin claim."""
    from diabeater.repositories import UserAccountRepository
    from diabeater.store import get_backend
    from diabeater.utils.logging import log_action

    backend = get_backend()
    user = backend.identity.find_by_email(email)
    if user is None:
        if not password:
            raise click.ClickException(f"No login exists for {email}. Pass --password to create one.")
        uid = backend.identity.create_login(email, password, name, claims={'admin': True})
        click.echo(f"Created admin login {email} ({uid})")
    else:
        uid = user.id
        claims = backend.identity.get_claims(uid)
        claims['admin'] = True
        backend.identity.set_claims(uid, claims)
        click.echo(f"Successfully set 'admin: true' for {email} ({uid})")

    UserAccountRepository(backend.documents).register_admin(uid, email)
    log_action('Admin', f"Granted admin rights to {email}", actor_id=uid)
    click.echo("The user must log out and back in for admin rights to take effect.")


@diabeater_cli.command('automate-featured')
@click.option('--seed', type=int, default=None, help='Random seed, for a reproducible selection.')
@with_appcontext
def automate_featured_command(seed):
    """Recompute the featured testimonials on the marketing website."""
    import random
    from diabeater.repositories import FeedbackRepository
    from diabeater.services.feedback import automate_featured
    from diabeater.store import get_backend

    repo = FeedbackRepository(get_backend().documents)
    rng = random.Random(seed) if seed is not None else None
    try:
        result = automate_featured(repo, rng=rng)
    except DiabeaterError as e:
        raise click.ClickException(e.message)
    click.echo(f"Featured {len(result['selected'])} feedbacks; {result['changed']} flags changed.")


@diabeater_cli.command('seed-categories')
@with_appcontext
def seed_categories_command():
    """Add the default meal plan categories that are missing."""
    from diabeater.repositories import CategoryRepository
    from diabeater.services.categories import seed_default_categories
    from diabeater.store import get_backend
    from diabeater.utils.logging import log_action

    added = seed_default_categories(CategoryRepository(get_backend().documents))
    for category in added:
        click.echo(f"  - Added {category.name}")
    if added:
        log_action('Categories', f"Seeded {len(added)} default categories")
    click.echo(f"Seed complete! {len(added)} categories added.")
