"""Commands: package intake, lookup, and retrieval."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from lockerctl.commands._base import LockerCommand
from lockerctl.domain.types import SizeClass
from lockerctl.services.custody import PackageCustodyService

if TYPE_CHECKING:
    from lockerctl.commands._context import AppContext

_SIZE_CHOICE = click.Choice([s.value for s in SizeClass], case_sensitive=False)


@click.command(
    cls=LockerCommand,
    examples="""\
  lockerctl store 1 --size small --name "Ana Ruiz" --contact ana@example.org \\
      --product "Book" --by concierge
  lockerctl store 1 --size large --name Bo --contact "+34 600 000 000" \\
      --product "Monitor" --tracking 1Z999 --courier UPS --by concierge
  lockerctl -q store 1 --size medium --name Bo --contact bo@example.org \\
      --product Shoes --by concierge""",
)
@click.argument("system_id", type=int)
@click.option("--size", "size_class", required=True, type=_SIZE_CHOICE, help="Locker size.")
@click.option("--name", "recipient_name", required=True, help="Recipient name.")
@click.option("--contact", "recipient_contact", required=True, help="Recipient contact.")
@click.option("--product", "product_ref", required=True, help="What the package is.")
@click.option("--tracking", "tracking_number", default=None, help="Courier tracking number.")
@click.option("--courier", default=None, help="Delivering courier.")
@click.option("--comments", default=None, help="Free-text notes.")
@click.option("--by", "placed_by", required=True, help="Staff member placing the package.")
@click.pass_obj
def store(
    app: AppContext,
    system_id: int,
    size_class: str,
    recipient_name: str,
    recipient_contact: str,
    product_ref: str,
    tracking_number: str | None,
    courier: str | None,
    comments: str | None,
    placed_by: str,
) -> None:
    """Place a package in a free locker and print its pickup code."""
    recipient = {
        "name": recipient_name,
        "contact": recipient_contact,
        "product_ref": product_ref,
        "tracking_number": tracking_number,
        "courier": courier,
        "comments": comments,
    }
    svc = PackageCustodyService(app.community)
    app.emit(svc.store(system_id, size_class, recipient, placed_by))


@click.command(
    cls=LockerCommand,
    examples="""\
  lockerctl lookup 7
  lockerctl --json lookup 7""",
)
@click.argument("locker_id", type=int)
@click.pass_obj
def lookup(app: AppContext, locker_id: int) -> None:
    """Show the package waiting in a locker (never its code)."""
    app.emit(PackageCustodyService(app.community).request_retrieval(locker_id))


@click.command(
    cls=LockerCommand,
    examples="""\
  lockerctl retrieve 7 --otp 482913 --by "Ana Ruiz"
  lockerctl retrieve 7 --by Ana""",
)
@click.argument("locker_id", type=int)
@click.option("--otp", prompt="Pickup code", hide_input=True, help="The 6-digit pickup code.")
@click.option("--by", "retrieved_by", required=True, help="Who is collecting the package.")
@click.pass_obj
def retrieve(app: AppContext, locker_id: int, otp: str, retrieved_by: str) -> None:
    """Open a locker with its pickup code and hand over the package."""
    svc = PackageCustodyService(app.community)
    app.emit(svc.verify_and_retrieve(locker_id, otp.strip(), retrieved_by))


@click.command(
    cls=LockerCommand,
    examples="""\
  lockerctl packages
  lockerctl packages --system 1
  lockerctl packages --contact ana@example.org""",
)
@click.option("--system", "system_id", default=None, type=int, help="Only this system.")
@click.option("--contact", "recipient_contact", default=None, help="Only this recipient.")
@click.pass_obj
def packages(app: AppContext, system_id: int | None, recipient_contact: str | None) -> None:
    """List packages waiting to be collected."""
    svc = PackageCustodyService(app.community)
    app.emit(svc.list_open(system_id=system_id, recipient_contact=recipient_contact))
