import json
import random

import pytest

from grammarhub import cli
from grammarhub.client.config import ClientConfig
from grammarhub.client.context import ClientContext
from grammarhub.client.storage import SessionStorage
from grammarhub.quiz.catalog import Question
from grammarhub.quiz.engine import QuizSession


@pytest.fixture
def data_dir(tmp_path):
    subject = tmp_path / "data" / "articles"
    (subject / "primary").mkdir(parents=True)
    (subject / "config.json").write_text(
        json.dumps({"order": 3, "title": "Articles", "engine": "mcq", "unlockAt": 80, "setCounts": {"primary": 1}}),
        encoding="utf-8",
    )
    questions = [
        {"q": "__ apple", "options": ["an", "a"], "answer": 0},
        {"q": "__ hour", "options": ["an", "a"], "answer": 0},
        {"q": "__ cat", "options": ["an", "a"], "answer": 1},
    ]
    (subject / "primary" / "set1.json").write_text(json.dumps(questions), encoding="utf-8")
    offline = tmp_path / "data" / "idioms"
    offline.mkdir()
    (offline / "config.json").write_text(json.dumps({"order": 9, "status": "offline"}), encoding="utf-8")
    return tmp_path / "data"


@pytest.fixture
def ctx(tmp_path, data_dir):
    config = ClientConfig(backend_url=None, storage_dir=tmp_path, data_dir=data_dir)
    return ClientContext.build(config=config, local=SessionStorage(), max_workers=1)


@pytest.fixture
def logged_in(ctx):
    ctx.guard.create_session("STU001", "Asha Roy", "asha@example.com", "tok")
    return ctx


@pytest.fixture
def unshuffled(monkeypatch):
    monkeypatch.setattr("grammarhub.quiz.engine.shuffle", lambda items, rng=None: items)


def _answers(monkeypatch, *letters):
    replies = iter(letters)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(replies))


def test_parse_args_practice():
    args = cli.parse_args(["practice", "tenses", "primary", "2"])
    assert (args.command, args.subject, args.level, args.set) == ("practice", "tenses", "primary", "2")


def test_run_quiz_reprompts_until_valid_letter():
    quiz = QuizSession([Question(q="Pick", options=["x", "y"], answer=1)], rng=random.Random(0))
    replies = iter(["", "c", "zz", "b"])
    lines = []
    cli.run_quiz(quiz, ask=lambda prompt: next(replies), out=lines.append)
    assert quiz.answers == {0: 1}
    assert lines.count("Choose a letter between A and B.") == 3


def test_subjects_lists_cards(ctx, capsys):
    assert cli.main(["subjects"], context=ctx) == 0
    out = capsys.readouterr().out
    assert "03 Articles (mcq) sets P:1 | completed 0" in out
    assert "09 idioms [offline]" in out


def test_practice_requires_login(ctx, capsys):
    assert cli.main(["practice", "articles", "primary", "1"], context=ctx) == 1
    assert "Please log in first" in capsys.readouterr().err


def test_practice_scores_and_stores_locally(logged_in, monkeypatch, capsys, unshuffled):
    _answers(monkeypatch, "a", "A", "a")

    assert cli.main(["practice", "articles", "primary", "1"], context=logged_in) == 0

    out = capsys.readouterr().out
    assert "Articles | Primary (P) | Set 01" in out
    assert "Q3: an (answer: a)" in out
    assert "Score 2/3 (67%)" in out
    assert "Score 80% or higher to unlock" in out
    assert "uploaded on the next sync" not in out
    stored = logged_in.progress.get_set_result("articles", "primary", "1")
    assert stored["percentage"] == 67


def test_practice_pass_message(logged_in, monkeypatch, capsys, unshuffled):
    _answers(monkeypatch, "a", "a", "b")
    cli.main(["practice", "articles", "primary", "1"], context=logged_in)
    assert "question PDF for this set is unlocked" in capsys.readouterr().out


def test_practice_bad_set(logged_in, capsys):
    assert cli.main(["practice", "articles", "primary", "7"], context=logged_in) == 1
    assert "Set 7 not found" in capsys.readouterr().err


def test_practice_offline_subject(logged_in, capsys):
    (logged_in.config.data_dir / "idioms" / "primary").mkdir()
    (logged_in.config.data_dir / "idioms" / "primary" / "set1.json").write_text(
        json.dumps([{"q": "q", "options": ["a", "b"], "answer": 0}]), encoding="utf-8"
    )
    assert cli.main(["practice", "idioms", "primary", "1"], context=logged_in) == 1
    assert "idioms is offline." in capsys.readouterr().err


def test_dashboard_offline(logged_in, capsys):
    logged_in.progress.save_result("articles", "primary", "1", 3, 3, time_taken=125)
    assert cli.main(["dashboard"], context=logged_in) == 0
    out = capsys.readouterr().out
    assert "Student: Asha Roy (STU001)" in out
    assert "Sets attempted: 1  Overall: 100%  Subjects: 1  Time: 2 min" in out
    assert "Best subject: articles (100%)" in out
    assert "articles/primary: 1 set(s), avg 100%" in out


def test_login_without_backend(ctx, capsys):
    assert cli.main(["login", "--email", "a@example.com", "--password", "pw"], context=ctx) == 1
    assert "GRAMMARHUB_BACKEND_URL" in capsys.readouterr().err


def test_register_without_backend(ctx, capsys):
    assert cli.main(["register", "--name", "Asha", "--email", "a@example.com", "--password", "pw12"], context=ctx) == 1
    assert "Backend not configured." in capsys.readouterr().err


def test_logout_clears_session(logged_in, capsys):
    assert cli.main(["logout"], context=logged_in) == 0
    assert "Logged out." in capsys.readouterr().out
    assert logged_in.guard.get_session() is None


def test_sync_without_backend(logged_in, capsys):
    assert cli.main(["sync"], context=logged_in) == 0
    out = capsys.readouterr().out
    assert "Queue: 0 sent, 0 pending, 0 dropped." in out
    assert "Progress refresh skipped" in out
