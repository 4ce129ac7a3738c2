"""Command line front end for students: accounts, practice and dashboards."""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from typing import Callable, List, Optional

from grammarhub.client.context import ClientContext
from grammarhub.client.session import LoginRequired
from grammarhub.quiz.catalog import QuestionCatalog, QuestionSetError, level_abbr, level_label
from grammarhub.quiz.engine import IncompleteQuizError, QuizSession

logger = logging.getLogger("grammarhub.cli")

LOGIN_MESSAGES = {
    "session_revoked": "You were signed out because your account was used on another device.",
    "session_expired": "Your session expired. Please log in again.",
}
STATUS_MESSAGES = {
    "pending": "Your account is pending teacher approval.",
    "blocked": "Your account has been blocked. Contact your teacher.",
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="grammarhub", description="GrammarHub student practice client")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    register = sub.add_parser("register", help="Request a new student account")
    register.add_argument("--name", required=True)
    register.add_argument("--email", required=True)
    register.add_argument("--password", help="Prompted for when omitted")

    login = sub.add_parser("login", help="Sign in and download your progress")
    login.add_argument("--email", required=True)
    login.add_argument("--password", help="Prompted for when omitted")

    sub.add_parser("logout", help="Sign out and clear local data")
    sub.add_parser("subjects", help="List available subjects")

    practice = sub.add_parser("practice", help="Practice a question set")
    practice.add_argument("subject")
    practice.add_argument("level")
    practice.add_argument("set", help="Set number")

    sub.add_parser("dashboard", help="Show progress statistics")
    sub.add_parser("sync", help="Upload queued results and refresh progress")

    serve = sub.add_parser("serve", help="Run the HTTP backend")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser.parse_args(argv)


def _password(value: Optional[str]) -> str:
    return value if value is not None else getpass.getpass("Password: ")


def _require_login(ctx: ClientContext) -> Optional[dict]:
    try:
        return ctx.guard.check_auth()
    except LoginRequired as exc:
        print(LOGIN_MESSAGES.get(exc.reason, "Please log in first: grammarhub login --email <email>"), file=sys.stderr)
        return None


def cmd_register(ctx: ClientContext, args) -> int:
    result = ctx.api.register(args.name, args.email, _password(args.password))
    if not result.get("success"):
        print(result.get("error") or "Registration failed.", file=sys.stderr)
        return 1
    print(result.get("message") or "Registration submitted.")
    print(f"Student ID: {result.get('studentId')}")
    return 0


def cmd_login(ctx: ClientContext, args) -> int:
    result = ctx.api.login(args.email, _password(args.password))
    if not result.get("success"):
        if result.get("reason") == "no_backend_configured":
            print("No backend configured. Set GRAMMARHUB_BACKEND_URL to sign in.", file=sys.stderr)
        else:
            message = STATUS_MESSAGES.get(result.get("status")) or result.get("error") or "Login failed."
            print(message, file=sys.stderr)
        return 1
    ctx.guard.create_session(result["studentId"], result["studentName"], result["email"], result["sessionToken"])
    ctx.progress.prefetch_dashboard_data(result["studentId"])
    print(f"Welcome, {result['studentName']}!")
    return 0


def cmd_logout(ctx: ClientContext, args) -> int:
    try:
        ctx.guard.logout()
    except LoginRequired:
        pass
    print("Logged out.")
    return 0


def cmd_subjects(ctx: ClientContext, args) -> int:
    subjects = QuestionCatalog(ctx.config.data_dir).list_subjects()
    if not subjects:
        print("No subjects found.")
        return 0
    for cfg in subjects:
        badge = "" if cfg.is_online else " [offline]"
        levels = ", ".join(f"{level_abbr(lvl)}:{cfg.set_counts[lvl]}" for lvl in cfg.levels())
        done = ctx.progress.get_subject_stats(cfg.id)["completed"]
        print(f"{cfg.order:02d} {cfg.title or cfg.id}{badge} ({cfg.engine}) sets {levels} | completed {done}")
    return 0


def run_quiz(
    quiz: QuizSession,
    ask: Optional[Callable[[str], str]] = None,
    out: Callable[[str], None] = print,
) -> None:
    """Prompt for every question until each has a valid answer."""
    ask = ask or input
    for idx in range(quiz.total):
        out(f"\nQ{idx + 1}. {quiz.prompt(idx)}")
        options = quiz.options(idx)
        for pos, text in enumerate(options):
            out(f"  {chr(65 + pos)}. {text}")
        while True:
            choice = ask("Answer: ").strip().upper()
            if len(choice) == 1 and 0 <= ord(choice) - 65 < len(options):
                quiz.select(idx, ord(choice) - 65)
                break
            out(f"Choose a letter between A and {chr(64 + len(options))}.")


def cmd_practice(ctx: ClientContext, args) -> int:
    if _require_login(ctx) is None:
        return 1
    catalog = QuestionCatalog(ctx.config.data_dir)
    try:
        config = catalog.load_subject(args.subject)
        questions = catalog.load_question_set(args.subject, args.level, args.set)
    except QuestionSetError as exc:
        print(f"Failed to load practice set: {exc}", file=sys.stderr)
        return 1
    if not config.is_online:
        print(f"{config.title or config.id} is offline.", file=sys.stderr)
        return 1

    print(f"{config.title} | {level_label(args.level)} ({level_abbr(args.level)}) | Set {int(args.set):02d}")
    quiz = QuizSession(questions, engine=config.engine, unlock_at=config.unlock_at)
    started = ctx.progress.clock()
    run_quiz(quiz)
    try:
        result = quiz.submit(time_taken=int(ctx.progress.clock() - started))
    except IncompleteQuizError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    pct = ctx.progress.save_result(args.subject, args.level, args.set, result.score, result.total, result.time_taken)
    sync = ctx.api.sync_result(args.subject, args.level, args.set, result.score, result.total, result.time_taken)

    print("\nReview:")
    for item in result.review:
        mark = "ok " if item.is_correct else "x  "
        suffix = "" if item.is_correct else f" (answer: {item.correct})"
        print(f" {mark}Q{item.index + 1}: {item.selected}{suffix}")
    print(f"\nScore {result.score}/{result.total} ({pct}%)")
    if result.passed:
        print("Outstanding! The question PDF for this set is unlocked.")
    else:
        print(f"Keep going! Score {config.unlock_at}% or higher to unlock the question PDF.")
    if sync.get("queued"):
        print("Result saved locally; it will be uploaded on the next sync.")
    elif not sync.get("success") and sync.get("reason") != "no_backend_configured":
        print(f"Result saved locally; the server did not accept it: {sync.get('error') or sync.get('reason')}")
    return 0


def cmd_dashboard(ctx: ClientContext, args) -> int:
    session = _require_login(ctx)
    if session is None:
        return 1
    ctx.api.retry_queue()
    ctx.progress.sync_from_backend()
    stats = ctx.progress.get_global_stats()
    minutes = ctx.progress.get_time_totals() // 60
    print(f"Student: {session.get('studentName')} ({session.get('studentId')})")
    print(f"Sets attempted: {stats['totalSetsAttempted']}  Overall: {stats['overallPercentage']}%  "
          f"Subjects: {stats['subjectsActive']}  Time: {minutes} min")
    best = stats["bestSubject"]
    print(f"Best subject: {best['id']} ({best['score']}%)")
    last = stats["lastAttempted"]
    if last:
        print(f"Last attempted: {last['subject']} {last['level']} set {last['set']} - {last['percentage']}% on {last['date']}")
    data = ctx.progress.get_all()
    for subject in sorted(k for k in data if k != "_meta"):
        for level in data[subject]:
            level_stats = ctx.progress.get_level_stats(subject, level)
            print(f"  {subject}/{level}: {level_stats['completed']} set(s), avg {level_stats['avgScore']}%")
    return 0


def cmd_sync(ctx: ClientContext, args) -> int:
    if _require_login(ctx) is None:
        return 1
    summary = ctx.api.retry_queue()
    ctx.progress.invalidate_cache()
    ok = ctx.progress.sync_from_backend()
    print(f"Queue: {summary['sent']} sent, {summary['kept']} pending, {summary['dropped']} dropped.")
    print("Progress refreshed." if ok else "Progress refresh skipped (offline or no backend).")
    return 0


def cmd_serve(ctx: ClientContext, args) -> int:
    import uvicorn

    uvicorn.run("grammarhub.api.main:app", host=args.host, port=args.port)
    return 0


COMMANDS = {
    "register": cmd_register,
    "login": cmd_login,
    "logout": cmd_logout,
    "subjects": cmd_subjects,
    "practice": cmd_practice,
    "dashboard": cmd_dashboard,
    "sync": cmd_sync,
    "serve": cmd_serve,
}


def main(argv: List[str] | None = None, context: Optional[ClientContext] = None) -> int:
    args = parse_args(argv)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    ctx = context or ClientContext.build()
    return COMMANDS[args.command](ctx, args)


if __name__ == "__main__":  # pragma: no cover - manual execution path
    sys.exit(main())
