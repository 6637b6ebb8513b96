# storefront/cli.py
import click
import pandas as pd
from flask.cli import with_appcontext
from werkzeug.security import generate_password_hash

from .extensions import db
from .model import AdminRole, User, ADMIN_ROLES
from .services import products


@click.command("create-admin")
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--name", default=None)
@click.option("--role", type=click.Choice(ADMIN_ROLES), default="admin", show_default=True)
@with_appcontext
def create_admin(email, password, name, role):
    """Create a login identity and grant it admin access.

    An existing identity with the same email is granted the role instead.
    """
    email = email.strip().lower()
    u = User.query.filter_by(email=email).first()
    if u is None:
        u = User(email=email, display_name=name, password_hash=generate_password_hash(password))
        db.session.add(u)
        db.session.flush()
    admin = db.session.get(AdminRole, u.id)
    if admin is None:
        db.session.add(AdminRole(user_id=u.id, role=role))
    else:
        admin.role = role
    db.session.commit()
    click.echo(f"Admin ready: {u.id} {u.email} ({role})")


@click.command("export-products")
@click.argument("path", type=click.Path(dir_okay=False, writable=True))
@with_appcontext
def export_products(path):
    """Write the whole catalog to a CSV file."""
    df = pd.DataFrame(products.export_rows(), columns=products.EXPORT_COLUMNS)
    df.to_csv(path, index=False)
    click.echo(f"{len(df)} products exported to {path}")


@click.command("import-products")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def import_products(path):
    """Create or update products from a CSV in the export format, keyed on slug."""
    df = pd.read_csv(path, dtype={"slug": str, "images": str})
    df.columns = df.columns.str.strip()
    if "name" not in df.columns:
        raise click.ClickException("Missing required column: name")

    created = updated = 0
    for row in df.to_dict(orient="records"):
        data = products.row_to_product_data(row)
        _, was_created = products.upsert_by_slug(data)
        if was_created:
            created += 1
        else:
            updated += 1
    click.echo(f"{created} products created, {updated} updated from {path}")


def register_cli(app):
    app.cli.add_command(create_admin)
    app.cli.add_command(export_products)
    app.cli.add_command(import_products)
