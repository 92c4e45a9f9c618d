"""``helpscout customers`` — customer records and their email/phone entries."""

import click

from helpscout_cli.cli.utils import (
    call_api,
    drop_empty,
    output_json,
    parse_id,
    parse_page,
    require_at_least_one_field,
    require_confirmation,
    with_error_handling,
)
from helpscout_cli.storage.credentials import CredentialStore

_EMAIL_TYPES = ["home", "other", "work"]
_PHONE_TYPES = ["fax", "home", "mobile", "other", "pager", "work"]


@click.group()
def customers() -> None:
    """Customer operations."""


@customers.command("list")
@click.option("-m", "--mailbox", default=None, help="Filter by mailbox ID.")
@click.option("--first-name", default=None, help="Filter by first name.")
@click.option("--last-name", default=None, help="Filter by last name.")
@click.option("--modified-since", default=None, help="Modified after this date (ISO 8601).")
@click.option("--sort-field", default=None, help="firstName, lastName, modifiedAt or score.")
@click.option("--sort-order", type=click.Choice(["asc", "desc"]), default=None, help="Sort order.")
@click.option("--page", default=None, help="Page number.")
@click.option("-q", "--query", default=None, help="Advanced search query.")
@click.pass_obj
@with_error_handling
def list_(
    store: CredentialStore,
    mailbox: str | None,
    first_name: str | None,
    last_name: str | None,
    modified_since: str | None,
    sort_field: str | None,
    sort_order: str | None,
    page: str | None,
    query: str | None,
) -> None:
    """List customers (one page)."""
    result = call_api(
        store,
        lambda client: client.list_customers(
            mailbox=mailbox,
            first_name=first_name,
            last_name=last_name,
            modified_since=modified_since,
            sort_field=sort_field,
            sort_order=sort_order,
            page=parse_page(page),
            query=query,
        ),
    )
    output_json(result.to_dict("customers"))


@customers.command()
@click.argument("customer_id")
@click.pass_obj
@with_error_handling
def view(store: CredentialStore, customer_id: str) -> None:
    """View a customer."""
    cid = parse_id(customer_id, "customer")
    output_json(call_api(store, lambda client: client.get_customer(cid)))


@customers.command()
@click.option("--first-name", default=None, help="First name.")
@click.option("--last-name", default=None, help="Last name.")
@click.option("--email", default=None, help="Email address.")
@click.option("--phone", default=None, help="Phone number.")
@click.option("--company", default=None, help="Company.")
@click.option("--job-title", default=None, help="Job title.")
@click.option("--location", default=None, help="Location.")
@click.option("--background", default=None, help="Background notes.")
@click.pass_obj
@with_error_handling
def create(
    store: CredentialStore,
    first_name: str | None,
    last_name: str | None,
    email: str | None,
    phone: str | None,
    company: str | None,
    job_title: str | None,
    location: str | None,
    background: str | None,
) -> None:
    """Create a customer."""
    data = drop_empty(
        firstName=first_name,
        lastName=last_name,
        organization=company,
        jobTitle=job_title,
        location=location,
        background=background,
    )
    if email:
        data["emails"] = [{"type": "work", "value": email}]
    if phone:
        data["phones"] = [{"type": "work", "value": phone}]
    require_at_least_one_field(data, "Customer create")

    call_api(store, lambda client: client.create_customer(data))
    output_json({"message": "Customer created"})


@customers.command()
@click.argument("customer_id")
@click.option("--first-name", default=None, help="First name.")
@click.option("--last-name", default=None, help="Last name.")
@click.option("--company", default=None, help="Company.")
@click.option("--job-title", default=None, help="Job title.")
@click.option("--location", default=None, help="Location.")
@click.option("--background", default=None, help="Background notes.")
@click.pass_obj
@with_error_handling
def update(
    store: CredentialStore,
    customer_id: str,
    first_name: str | None,
    last_name: str | None,
    company: str | None,
    job_title: str | None,
    location: str | None,
    background: str | None,
) -> None:
    """Update a customer's profile fields."""
    cid = parse_id(customer_id, "customer")
    data = drop_empty(
        firstName=first_name,
        lastName=last_name,
        organization=company,
        jobTitle=job_title,
        location=location,
        background=background,
    )
    require_at_least_one_field(data, "Customer update")

    call_api(store, lambda client: client.update_customer(cid, data))
    output_json({"message": "Customer updated"})


@customers.command()
@click.argument("customer_id")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation.")
@click.pass_obj
@with_error_handling
def delete(store: CredentialStore, customer_id: str, yes: bool) -> None:
    """Delete a customer."""
    cid = parse_id(customer_id, "customer")
    require_confirmation("customer", yes)
    call_api(store, lambda client: client.delete_customer(cid))
    output_json({"message": "Customer deleted"})


# ── Emails ─────────────────────────────────────────────────────────────────────


@customers.command()
@click.argument("customer_id")
@click.pass_obj
@with_error_handling
def emails(store: CredentialStore, customer_id: str) -> None:
    """List a customer's email addresses."""
    cid = parse_id(customer_id, "customer")
    output_json(call_api(store, lambda client: client.list_customer_emails(cid)))


@customers.command("add-email")
@click.argument("customer_id")
@click.option("--value", required=True, help="Email address.")
@click.option("--type", "email_type", type=click.Choice(_EMAIL_TYPES), default="work", show_default=True)
@click.pass_obj
@with_error_handling
def add_email(store: CredentialStore, customer_id: str, value: str, email_type: str) -> None:
    """Add an email address to a customer."""
    cid = parse_id(customer_id, "customer")
    call_api(store, lambda client: client.create_customer_email(cid, email_type, value))
    output_json({"message": "Email added"})


@customers.command("update-email")
@click.argument("customer_id")
@click.argument("email_id")
@click.option("--value", default=None, help="New email address.")
@click.option("--type", "email_type", type=click.Choice(_EMAIL_TYPES), default=None)
@click.pass_obj
@with_error_handling
def update_email(
    store: CredentialStore, customer_id: str, email_id: str, value: str | None, email_type: str | None
) -> None:
    """Update one of a customer's email addresses."""
    cid = parse_id(customer_id, "customer")
    eid = parse_id(email_id, "email")
    data = drop_empty(value=value, type=email_type)
    require_at_least_one_field(data, "Email update")
    call_api(store, lambda client: client.update_customer_email(cid, eid, data))
    output_json({"message": "Email updated"})


@customers.command("delete-email")
@click.argument("customer_id")
@click.argument("email_id")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation.")
@click.pass_obj
@with_error_handling
def delete_email(store: CredentialStore, customer_id: str, email_id: str, yes: bool) -> None:
    """Remove an email address from a customer."""
    cid = parse_id(customer_id, "customer")
    eid = parse_id(email_id, "email")
    require_confirmation("email", yes)
    call_api(store, lambda client: client.delete_customer_email(cid, eid))
    output_json({"message": "Email deleted"})


# ── Phones ─────────────────────────────────────────────────────────────────────


@customers.command()
@click.argument("customer_id")
@click.pass_obj
@with_error_handling
def phones(store: CredentialStore, customer_id: str) -> None:
    """List a customer's phone numbers."""
    cid = parse_id(customer_id, "customer")
    output_json(call_api(store, lambda client: client.list_customer_phones(cid)))


@customers.command("add-phone")
@click.argument("customer_id")
@click.option("--value", required=True, help="Phone number.")
@click.option("--type", "phone_type", type=click.Choice(_PHONE_TYPES), default="work", show_default=True)
@click.pass_obj
@with_error_handling
def add_phone(store: CredentialStore, customer_id: str, value: str, phone_type: str) -> None:
    """Add a phone number to a customer."""
    cid = parse_id(customer_id, "customer")
    call_api(store, lambda client: client.create_customer_phone(cid, phone_type, value))
    output_json({"message": "Phone added"})


@customers.command("update-phone")
@click.argument("customer_id")
@click.argument("phone_id")
@click.option("--value", default=None, help="New phone number.")
@click.option("--type", "phone_type", type=click.Choice(_PHONE_TYPES), default=None)
@click.pass_obj
@with_error_handling
def update_phone(
    store: CredentialStore, customer_id: str, phone_id: str, value: str | None, phone_type: str | None
) -> None:
    """Update one of a customer's phone numbers."""
    cid = parse_id(customer_id, "customer")
    pid = parse_id(phone_id, "phone")
    data = drop_empty(value=value, type=phone_type)
    require_at_least_one_field(data, "Phone update")
    call_api(store, lambda client: client.update_customer_phone(cid, pid, data))
    output_json({"message": "Phone updated"})


@customers.command("delete-phone")
@click.argument("customer_id")
@click.argument("phone_id")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation.")
@click.pass_obj
@with_error_handling
def delete_phone(store: CredentialStore, customer_id: str, phone_id: str, yes: bool) -> None:
    """Remove a phone number from a customer."""
    cid = parse_id(customer_id, "customer")
    pid = parse_id(phone_id, "phone")
    require_confirmation("phone", yes)
    call_api(store, lambda client: client.delete_customer_phone(cid, pid))
    output_json({"message": "Phone deleted"})
