#!/usr/bin/env python3
"""Referral Flow CLI."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from referral_flow.config import ConfigError, Settings, load_settings
from referral_flow.contacts import (
    TAGS,
    Contact,
    FilterCriteria,
    ReferralStatus,
    Stage,
    ValidationError,
    blank_contact,
    generate_key,
)
from referral_flow.contacts.models import find_tag
from referral_flow.tracker import ContactRow, ReferralTracker


STAGE_CHOICES = [stage.value for stage in Stage]
STATUS_CHOICES = [status.value for status in ReferralStatus]


def _tag(value: str) -> str:
    tag = find_tag(value)
    if tag is None:
        raise argparse.ArgumentTypeError(
            f"unknown tag {value!r} (choose from: {', '.join(TAGS)})"
        )
    return tag


def _position(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError("positions start at 1")
    return number


def _add_field_arguments(parser: argparse.ArgumentParser, *, required: bool) -> None:
    parser.add_argument("--name", required=required, help="Contact name.")
    parser.add_argument("--company", required=required, help="Company name.")
    parser.add_argument("--stage", choices=STAGE_CHOICES, help="Outreach stage.")
    parser.add_argument(
        "--status",
        dest="referral_status",
        choices=STATUS_CHOICES,
        help="Referral status.",
    )
    parser.add_argument(
        "--details",
        dest="contact_details",
        help="Contact details (email, phone, profile URL).",
    )
    parser.add_argument(
        "--message",
        dest="referral_message",
        help="Referral message (defaults to the built-in template).",
    )
    parser.add_argument(
        "--tag",
        dest="tags",
        action="append",
        type=_tag,
        help="Tag to apply; repeat for several. Replaces existing tags on edit.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="referral-flow",
        description="Track referral outreach contacts locally.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List contacts, optionally filtered.")
    list_parser.add_argument("--name", default="", help="Name contains (case-insensitive).")
    list_parser.add_argument("--company", default="", help="Company contains (case-insensitive).")
    list_parser.add_argument("--stage", default="", choices=[""] + STAGE_CHOICES)
    list_parser.add_argument(
        "--status", dest="referral_status", default="", choices=[""] + STATUS_CHOICES
    )
    list_parser.add_argument("--tag", type=_tag, help="Has this tag.")

    show_parser = subparsers.add_parser("show", help="Show one contact in full.")
    show_parser.add_argument("position", type=_position, help="Position shown by `list`.")

    add_parser = subparsers.add_parser("add", help="Add a contact.")
    _add_field_arguments(add_parser, required=True)

    edit_parser = subparsers.add_parser("edit", help="Edit a contact.")
    edit_parser.add_argument("position", type=_position, help="Position shown by `list`.")
    _add_field_arguments(edit_parser, required=False)
    edit_parser.add_argument(
        "--toggle-tag",
        dest="toggle_tags",
        action="append",
        type=_tag,
        help="Add the tag if missing, remove it if present.",
    )

    remove_parser = subparsers.add_parser("remove", help="Remove a contact.")
    remove_parser.add_argument("position", type=_position, help="Position shown by `list`.")

    subparsers.add_parser("options", help="Show stages, statuses and tags.")
    subparsers.add_parser("generate-key", help="Print a new encryption key.")

    return parser


def _field_changes(args: argparse.Namespace) -> Dict[str, Any]:
    fields = ("name", "company", "stage", "referral_status", "contact_details", "referral_message", "tags")
    changes: Dict[str, Any] = {}
    for name in fields:
        value = getattr(args, name, None)
        if value is not None:
            changes[name] = tuple(value) if name == "tags" else value
    return changes


def format_contact_rows(rows: List[ContactRow]) -> str:
    """Return a human-friendly summary table string."""

    lines = ["# | Name | Company | Stage | Referral Status | Tags"]
    for row in rows:
        contact = row.contact
        tags = ", ".join(contact.tags) if contact.tags else "-"
        lines.append(
            f"{row.position + 1} | {contact.name} | {contact.company} | "
            f"{contact.stage.value} | {contact.referral_status.value} | {tags}"
        )
    return "\n".join(lines)


def format_contact(contact: Contact) -> str:
    lines = [
        f"Name: {contact.name}",
        f"Company: {contact.company}",
        f"Stage: {contact.stage.value}",
        f"Referral status: {contact.referral_status.value}",
        f"Contact details: {contact.contact_details or '-'}",
        f"Tags: {', '.join(contact.tags) if contact.tags else '-'}",
        f"ID: {contact.id}",
        "",
        "Referral message:",
        contact.referral_message,
    ]
    return "\n".join(lines)


def _open_tracker(settings: Settings) -> ReferralTracker:
    tracker = ReferralTracker.from_settings(settings)
    tracker.load()
    return tracker


def _cmd_list(tracker: ReferralTracker, criteria: FilterCriteria) -> int:
    rows = tracker.rows(criteria)
    if not rows:
        if not tracker.contacts():
            print("No contacts added yet.")
        else:
            print("No contacts match the current filters.")
        return 0
    print(format_contact_rows(rows))
    return 0


def _cmd_show(tracker: ReferralTracker, position: int) -> int:
    try:
        contact = tracker.store.get(position - 1)
    except IndexError:
        print(f"No contact at position {position}.", file=sys.stderr)
        return 1
    print(format_contact(contact))
    return 0


def _cmd_add(tracker: ReferralTracker, changes: Dict[str, Any]) -> int:
    try:
        contact = blank_contact().with_changes(**changes)
        tracker.add(contact)
    except ValidationError as exc:
        print(f"Add failed: {exc}", file=sys.stderr)
        return 1
    print("Contact added successfully.")
    return 0


def _cmd_edit(
    tracker: ReferralTracker,
    position: int,
    changes: Dict[str, Any],
    toggle_tags: Optional[List[str]],
) -> int:
    try:
        contact = tracker.store.get(position - 1).with_changes(**changes)
        for tag in toggle_tags or []:
            contact = contact.with_tag_toggled(tag)
        tracker.update(position - 1, contact)
    except IndexError:
        print(f"No contact at position {position}.", file=sys.stderr)
        return 1
    except ValidationError as exc:
        print(f"Update failed: {exc}", file=sys.stderr)
        return 1
    print("Contact updated successfully.")
    return 0


def _cmd_remove(tracker: ReferralTracker, position: int) -> int:
    try:
        removed = tracker.remove(position - 1)
    except IndexError:
        print(f"No contact at position {position}.", file=sys.stderr)
        return 1
    print(f"Removed {removed.name} ({removed.company}).")
    return 0


def _cmd_options() -> int:
    print("Stages:", ", ".join(STAGE_CHOICES))
    print("Referral statuses:", ", ".join(STATUS_CHOICES))
    print("Tags:", ", ".join(TAGS))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "generate-key":
        print(generate_key())
        return 0
    if args.command == "options":
        return _cmd_options()

    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        return _dispatch(args, settings)
    except OSError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1


def _dispatch(args: argparse.Namespace, settings: Settings) -> int:
    tracker = _open_tracker(settings)
    try:
        if args.command == "list":
            criteria = FilterCriteria(
                name=args.name,
                company=args.company,
                stage=args.stage,
                referral_status=args.referral_status,
                tag=args.tag or "",
            )
            return _cmd_list(tracker, criteria)
        if args.command == "show":
            return _cmd_show(tracker, args.position)
        if args.command == "add":
            return _cmd_add(tracker, _field_changes(args))
        if args.command == "edit":
            return _cmd_edit(
                tracker,
                args.position,
                _field_changes(args),
                getattr(args, "toggle_tags", None),
            )
        if args.command == "remove":
            return _cmd_remove(tracker, args.position)
    finally:
        tracker.close()
    raise ValueError(f"Unknown command: {args.command}")


if __name__ == "__main__":
    raise SystemExit(main())
