"""Building, tenant and shop commands."""

import click
from propfin.domain.errors import DomainError
from propfin.domain.property import PropertyService
from propfin.cli.error_handling import handle_domain_error
from propfin.utils.amount_parser import parse_amount


@click.group()
def property_group():
    """Manage buildings, tenants and shops."""
    pass


def _amount_or_exit(ctx, value: str):
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)


@property_group.command("add-building")
@click.argument("name")
@click.option("--address", help="Street address")
@click.pass_context
def add_building(ctx, name: str, address: str | None):
    """Create a building."""
    try:
        building_id = PropertyService(ctx.obj["db"]).create_building(
            ctx.obj["user_id"], name, address=address
        )
        click.echo(f"Created building '{name}' (ID: {building_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@property_group.command("add-tenant")
@click.argument("name")
@click.option("--phone", help="Phone number")
@click.option("--email", help="Email address")
@click.pass_context
def add_tenant(ctx, name: str, phone: str | None, email: str | None):
    """Create a tenant."""
    try:
        tenant_id = PropertyService(ctx.obj["db"]).create_tenant(
            ctx.obj["user_id"], name, phone=phone, email=email
        )
        click.echo(f"Created tenant '{name}' (ID: {tenant_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@property_group.command("add-shop")
@click.option("--building", "building_id", type=int, required=True, help="Building ID")
@click.option("--number", "shop_number", required=True, help="Shop number")
@click.option("--rent", required=True, help="Monthly rent")
@click.option("--advance", default="0", help="Advance deposit")
@click.option("--name", help="Shop name")
@click.option("--tenant", "tenant_id", type=int, help="Tenant ID to allocate the shop to")
@click.option("--allocated", help="Allocation date (YYYY-MM-DD); defaults to today with --tenant")
@click.pass_context
def add_shop(
    ctx,
    building_id: int,
    shop_number: str,
    rent: str,
    advance: str,
    name: str | None,
    tenant_id: int | None,
    allocated: str | None,
):
    """Create a shop, optionally allocated to a tenant.

    Rent periods for every full month since the allocation date are created
    straight away.

    Examples:
        propfin property add-shop --building 1 --number G-01 --rent 10000
        propfin property add-shop --building 1 --number G-02 --rent 8000 --tenant 3 --allocated 2024-01-15
    """
    service = PropertyService(ctx.obj["db"])
    try:
        shop_id = service.create_shop(
            user_id=ctx.obj["user_id"],
            building_id=building_id,
            shop_number=shop_number,
            monthly_rent=_amount_or_exit(ctx, rent),
            advance=_amount_or_exit(ctx, advance),
            name=name,
            tenant_id=tenant_id,
            allocated_at=allocated,
        )
        click.echo(f"Created shop '{shop_number}' (ID: {shop_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@property_group.command("update-shop")
@click.argument("shop_id", type=int)
@click.option("--rent", help="New monthly rent (applies to periods not yet accrued)")
@click.option("--tenant", "tenant_id", type=int, help="Allocate to this tenant")
@click.option("--vacate", is_flag=True, help="Remove the tenant")
@click.option("--allocated", help="Corrected allocation date (YYYY-MM-DD)")
@click.pass_context
def update_shop(
    ctx, shop_id: int, rent: str | None, tenant_id: int | None, vacate: bool, allocated: str | None
):
    """Change rent, tenant or allocation date of a shop."""
    if vacate and tenant_id is not None:
        click.echo("Error: --vacate cannot be combined with --tenant", err=True)
        ctx.exit(1)

    changes = {}
    if rent is not None:
        changes["monthly_rent"] = _amount_or_exit(ctx, rent)
    if tenant_id is not None:
        changes["tenant_id"] = tenant_id
    if vacate:
        changes["tenant_id"] = None
    if allocated is not None:
        changes["allocated_at"] = allocated
    if not changes:
        click.echo("Nothing to update.")
        return

    try:
        PropertyService(ctx.obj["db"]).update_shop(shop_id, ctx.obj["user_id"], **changes)
        click.echo(f"Updated shop {shop_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@property_group.command("delete-shop")
@click.argument("shop_id", type=int)
@click.pass_context
def delete_shop(ctx, shop_id: int):
    """Delete a shop with its rent periods."""
    try:
        PropertyService(ctx.obj["db"]).delete_shop(shop_id, ctx.obj["user_id"])
        click.echo(f"Deleted shop {shop_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@property_group.command("delete-tenant")
@click.argument("tenant_id", type=int)
@click.pass_context
def delete_tenant(ctx, tenant_id: int):
    """Delete a tenant and free their shops."""
    try:
        PropertyService(ctx.obj["db"]).delete_tenant(tenant_id, ctx.obj["user_id"])
        click.echo(f"Deleted tenant {tenant_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@property_group.command("delete-building")
@click.argument("building_id", type=int)
@click.pass_context
def delete_building(ctx, building_id: int):
    """Delete a building with all of its shops."""
    try:
        PropertyService(ctx.obj["db"]).delete_building(building_id, ctx.obj["user_id"])
        click.echo(f"Deleted building {building_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@property_group.command("list")
@click.pass_context
def list_property(ctx):
    """List buildings with their shops, and tenants."""
    service = PropertyService(ctx.obj["db"])
    user_id = ctx.obj["user_id"]

    buildings = service.list_buildings(user_id)
    if not buildings:
        click.echo("No buildings found.")
    for building in buildings:
        click.echo(f"\n{building.name} (ID: {building.id})")
        for shop in service.list_shops(user_id, building_id=building.id):
            tenant = f"tenant {shop.tenant_id} since {shop.allocated_at}" if shop.tenant_id else "vacant"
            click.echo(f"  Shop {shop.shop_number:8s} (ID: {shop.id:3d}) | rent {shop.monthly_rent:>10} | {tenant}")

    tenants = service.list_tenants(user_id)
    if tenants:
        click.echo("\nTenants:")
        for tenant in tenants:
            click.echo(f"  ID: {tenant.id:3d} | {tenant.name}")


def register_commands(cli):
    """Register property commands with main CLI."""
    cli.add_command(property_group, name="property")
