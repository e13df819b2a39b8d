import subprocess

import requests

from campsite_checker import notifier as notifier_module
from campsite_checker.notifier import Notifier


def test_desktop_command_per_platform():
    assert Notifier.desktop_command("Hi", "3 sites", "Linux") == ["notify-send", "Hi", "3 sites"]
    mac = Notifier.desktop_command('Say "hi"', "3 sites", "Darwin")
    assert mac[:2] == ["osascript", "-e"]
    assert 'with title "Say \\"hi\\""' in mac[2]
    assert Notifier.desktop_command("Hi", "x", "Windows")[0] == "msg"
    assert Notifier.desktop_command("Hi", "x", "Plan9") is None


def test_desktop_disabled_runs_nothing(monkeypatch):
    calls = []
    monkeypatch.setattr(notifier_module.subprocess, "run", lambda *a, **k: calls.append(a))

    assert Notifier(enable_desktop=False).send_desktop_notification("t", "m") is False
    assert calls == []


def test_desktop_notification_runs_command(monkeypatch):
    calls = []
    monkeypatch.setattr(notifier_module.platform, "system", lambda: "Linux")
    monkeypatch.setattr(notifier_module.subprocess, "run", lambda cmd, **k: calls.append(cmd))

    assert Notifier(enable_desktop=True).send_desktop_notification("Title", "Body") is True
    assert calls == [["notify-send", "Title", "Body"]]


def test_missing_command_is_swallowed(monkeypatch):
    def missing(*args, **kwargs):
        raise FileNotFoundError("notify-send")

    monkeypatch.setattr(notifier_module.platform, "system", lambda: "Linux")
    monkeypatch.setattr(notifier_module.subprocess, "run", missing)

    assert Notifier(enable_desktop=True).send_desktop_notification("t", "m") is False


def test_failing_command_is_swallowed(monkeypatch):
    def failing(cmd, **kwargs):
        raise subprocess.CalledProcessError(1, cmd)

    monkeypatch.setattr(notifier_module.platform, "system", lambda: "Darwin")
    monkeypatch.setattr(notifier_module.subprocess, "run", failing)

    assert Notifier(enable_desktop=True).send_desktop_notification("t", "m") is False


def test_webhook_posts_json(monkeypatch):
    posted = []

    class Ok:
        def raise_for_status(self):
            pass

    def fake_post(url, json=None, timeout=None):
        posted.append((url, json))
        return Ok()

    monkeypatch.setattr(notifier_module.requests, "post", fake_post)

    sent = Notifier(webhook_url="https://hooks.example.com/x").send_webhook("T", "M")

    assert sent is True
    assert posted == [("https://hooks.example.com/x", {"title": "T", "message": "M"})]


def test_webhook_failure_is_swallowed(monkeypatch):
    def down(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(notifier_module.requests, "post", down)

    assert Notifier(webhook_url="https://hooks.example.com/x").send_webhook("T", "M") is False


def test_notify_rings_bell(monkeypatch, capsys):
    monkeypatch.setattr(notifier_module.subprocess, "run", lambda *a, **k: None)

    Notifier(enable_desktop=False).notify("T", "M")

    assert capsys.readouterr().out == "\a"
