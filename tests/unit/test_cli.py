"""Tests for the rednote-sync command-line front-end.

Commands are invoked through ``main(argv)`` with the backend mocked by
respx and the cookie file redirected into ``tmp_path``.
"""

from __future__ import annotations

import json
import logging

import httpx
import pytest
import respx

from rednote_sync.cli import main
from tests.conftest import API_BASE, NOTE_URL, TEST_COOKIE


@pytest.fixture(autouse=True)
def _cookie_file(tmp_path, monkeypatch):
    path = tmp_path / "credentials.json"
    monkeypatch.setenv("COOKIE_STORE_PATH", str(path))
    yield path
    # main() binds the root handler to the captured stderr of this test.
    logging.getLogger().handlers.clear()


def _stdout_json(capsys) -> object:
    return json.loads(capsys.readouterr().out)


class TestCookieCommands:
    def test_set_show_clear(self, capsys) -> None:
        assert main(["cookie", "set", TEST_COOKIE]) == 0
        assert capsys.readouterr().out.strip() == "cookie saved"

        assert main(["cookie", "show"]) == 0
        shown = capsys.readouterr().out
        assert TEST_COOKIE not in shown
        assert f"({len(TEST_COOKIE)} chars)" in shown

        assert main(["cookie", "clear"]) == 0
        capsys.readouterr()
        assert main(["cookie", "show"]) == 0
        assert capsys.readouterr().out.strip() == "(no cookie stored)"

    def test_setting_same_value_is_unchanged(self, capsys) -> None:
        main(["cookie", "set", TEST_COOKIE])
        capsys.readouterr()

        main(["cookie", "set", TEST_COOKIE])

        assert capsys.readouterr().out.strip() == "cookie unchanged"


def test_fields_lists_declarations(capsys) -> None:
    assert main(["fields"]) == 0

    out = capsys.readouterr().out
    assert "liked_count" in out
    assert "点赞数" in out


class TestCrawlCommand:
    def test_success_prints_row(self, capsys) -> None:
        with respx.mock:
            respx.post(f"{API_BASE}/crawler/start").mock(return_value=httpx.Response(200, json={}))
            respx.get(f"{API_BASE}/crawler/status").mock(
                return_value=httpx.Response(200, json={"status": "idle"})
            )
            respx.get(f"{API_BASE}/data/files").mock(
                return_value=httpx.Response(
                    200,
                    json={"files": [{"name": "d_detail_contents.json", "path": "d_detail_contents.json", "modified_at": 1}]},
                )
            )
            respx.get(f"{API_BASE}/data/files/d_detail_contents.json").mock(
                return_value=httpx.Response(
                    200, json=[{"note_id": "abc123", "title": "Camping", "liked_count": 88}]
                )
            )
            code = main(["crawl", "--url", NOTE_URL, "--cookie", TEST_COOKIE, "--fields", "title,liked_count"])

        captured = capsys.readouterr()
        assert code == 0
        row = json.loads(captured.out)
        assert row["笔记标题"] == "Camping"
        assert row["点赞数"] == 88
        assert "All done" in captured.err

    def test_missing_cookie_fails_without_network(self, capsys) -> None:
        with respx.mock(assert_all_called=False) as router:
            start = router.post(f"{API_BASE}/crawler/start")
            code = main(["crawl", "--url", NOTE_URL])

        assert code == 1
        assert not start.called
        assert "error [validation]" in capsys.readouterr().err


class TestServiceCommands:
    def test_count_rejects_bad_time(self, capsys) -> None:
        code = main(["count", "露营", "--start", "soon", "--end", "later"])

        assert code == 1
        assert "error [validation]" in capsys.readouterr().err

    def test_count_prints_result(self, capsys) -> None:
        with respx.mock:
            respx.post(f"{API_BASE}/xhs/count_notes_by_time_range").mock(
                return_value=httpx.Response(200, json={"keyword": "露营", "count": 3})
            )
            code = main(
                ["count", "露营", "--start", "1769616000000", "--end", "1769702400000"]
            )

        assert code == 0
        assert _stdout_json(capsys) == {"keyword": "露营", "count": 3}

    def test_backend_error_exit_code(self, capsys) -> None:
        with respx.mock:
            respx.get(f"{API_BASE}/monitor/list").mock(
                return_value=httpx.Response(500, json={"detail": "database locked"})
            )
            code = main(["monitor", "list"])

        assert code == 1
        assert "database locked" in capsys.readouterr().err

    def test_monitor_check_reuses_stored_cookie(self, capsys) -> None:
        with respx.mock:
            respx.get(f"{API_BASE}/monitor/list").mock(
                return_value=httpx.Response(
                    200, json={"items": [{"note_id": "abc123", "cookies": "a1=stored"}]}
                )
            )
            check = respx.post(f"{API_BASE}/monitor/check_now").mock(
                return_value=httpx.Response(200, json={"delta_likes": 5, "delta_comments": 1})
            )
            code = main(["monitor", "check", "abc123"])

        assert code == 0
        assert json.loads(check.calls.last.request.content)["cookies"] == "a1=stored"
        captured = capsys.readouterr()
        assert "likes +5 comments +1" in captured.err

    def test_monitor_check_empty_response(self, capsys) -> None:
        with respx.mock:
            respx.get(f"{API_BASE}/monitor/list").mock(
                return_value=httpx.Response(200, json={"items": []})
            )
            respx.post(f"{API_BASE}/monitor/check_now").mock(return_value=httpx.Response(200))
            code = main(["monitor", "check", "abc123"])

        assert code == 0
        assert "likes +0 comments +0" in capsys.readouterr().err

    def test_toggle_unknown_note(self, capsys) -> None:
        with respx.mock:
            respx.get(f"{API_BASE}/monitor/list").mock(
                return_value=httpx.Response(200, json={"items": []})
            )
            code = main(["monitor", "toggle", "missing"])

        assert code == 1
        assert "not monitored" in capsys.readouterr().err
