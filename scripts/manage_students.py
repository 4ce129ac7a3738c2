"""Admin utility for student accounts: create, add details, list and review."""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from contextlib import suppress

from grammarhub.db import database
from grammarhub.services.approval_service import ALLOWED_STATUSES, ApprovalService
from grammarhub.services.auth_service import AuthService, StudentExistsError


logger = logging.getLogger("grammarhub.scripts.manage_students")

ACTOR = "cli"

# Access SessionLocal dynamically so test fixtures that rebind the
# sessionmaker are respected.
SessionLocal = lambda: database.SessionLocal()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage GrammarHub student accounts")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-student", help="Create an approved student account")
    create.add_argument("student_id")
    create.add_argument("student_name")
    create.add_argument("email")
    create.add_argument("--password", help="Prompted for when omitted")
    create.add_argument("--admin", action="store_true", help="Give the account the admin role")

    details = sub.add_parser("create-details", help="Create or update a student's profile details")
    details.add_argument("student_id")
    details.add_argument("student_name")
    details.add_argument("--school-name", default="")
    details.add_argument("--class-name", default="")
    details.add_argument("--profile-image-url", default="")
    details.add_argument("--guardian-name", default="")
    details.add_argument("--contact-number", default="")
    details.add_argument("--address", default="")

    listing = sub.add_parser("list", help="List registrations by status")
    listing.add_argument("--status", default="pending", choices=[*ALLOWED_STATUSES, "all"])

    status = sub.add_parser("set-status", help="Approve, block or reset a student to pending")
    status.add_argument("student_id")
    status.add_argument("status", choices=ALLOWED_STATUSES)
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    session = SessionLocal()
    try:
        if args.command == "create-student":
            password = args.password if args.password is not None else getpass.getpass("Password: ")
            try:
                result = AuthService(session).create_student(
                    args.student_id,
                    args.student_name,
                    args.email,
                    password,
                    actor=ACTOR,
                    role="admin" if args.admin else "student",
                )
            except StudentExistsError as exc:
                print(str(exc), file=sys.stderr)
                return 1
            print(f"Student created: {result['studentId']} ({args.email.lower()})")
            return 0

        if args.command == "create-details":
            result = ApprovalService(session).update_details(
                args.student_id,
                ACTOR,
                args.student_name,
                school_name=args.school_name,
                class_name=args.class_name,
                profile_image_url=args.profile_image_url,
                guardian_name=args.guardian_name,
                contact_number=args.contact_number,
                address=args.address,
            )
            print(f"Student details saved for: {result['studentId']}")
            return 0

        if args.command == "list":
            status = None if args.status == "all" else args.status
            students = ApprovalService(session).list_students(status)
            if not students:
                print("No students found.")
            for row in students:
                print(f"{row['studentId']}\t{row['status']}\t{row['email']}\t{row['studentName']}")
            return 0

        result = ApprovalService(session).set_status(args.student_id, args.status, ACTOR)
        if not result["success"]:
            print(result["message"], file=sys.stderr)
            return 1
        verb = "updated" if result["changed"] else "unchanged"
        print(f"{args.student_id} {verb}: {result['student']['status']}")
        logger.info("Student status command finished", extra={"student_id": args.student_id, "status": args.status})
        return 0
    finally:
        with suppress(Exception):
            session.close()


def main(argv: list[str] | None = None) -> int:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    database.ensure_sqlite_schema()
    return run(args)


if __name__ == "__main__":  # pragma: no cover - manual execution path
    sys.exit(main())
