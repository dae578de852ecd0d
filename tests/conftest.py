import sys
from pathlib import Path
import json
import pytest

# Ensure repo root is on sys.path so `import transcriber...` works in tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from transcriber.core.config import Settings  # noqa: E402
from transcriber.utils.process import ProcessResult  # noqa: E402


def pretty_json(obj) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False, sort_keys=True)


class FakeRunner:
    """Stands in for ffmpeg and the recognizer container.

    ffmpeg calls write a dummy WAV to the output path. Recognizer calls write `document`
    (dict -> JSON, str -> raw text, None -> nothing) into the mounted scratch directory.
    """

    def __init__(self, document=None, recognizer_rc=0, ffmpeg_rc=0, output_name=None):
        self.document = document
        self.recognizer_rc = recognizer_rc
        self.ffmpeg_rc = ffmpeg_rc
        self.output_name = output_name
        self.calls = []
        self.scratch_dirs = []

    def __call__(self, args, timeout=None):
        args = list(args)
        self.calls.append(args)
        if "-v" in args:
            return self._recognize(args)
        return self._ffmpeg(args)

    def _ffmpeg(self, args):
        if self.ffmpeg_rc != 0:
            return ProcessResult(returncode=self.ffmpeg_rc, output="Invalid data found when processing input")
        Path(args[-1]).write_bytes(b"RIFF0000WAVE")
        return ProcessResult(returncode=0, output="")

    def _recognize(self, args):
        mount = args[args.index("-v") + 1]
        scratch = Path(mount.rsplit(":/app", 1)[0])
        self.scratch_dirs.append(scratch)
        assert (scratch / args[-1]).is_file(), "audio not staged into scratch dir"
        if self.recognizer_rc != 0:
            return ProcessResult(returncode=self.recognizer_rc, output="CUDA out of memory")
        if self.document is not None:
            name = self.output_name or Path(args[-1]).stem + ".json"
            payload = self.document if isinstance(self.document, str) else json.dumps(self.document)
            (scratch / name).write_text(payload, encoding="utf-8")
        return ProcessResult(returncode=0, output="done")

    @property
    def programs(self):
        return [c[0] for c in self.calls]


HELLO_WORLD = {
    "segments": [
        {"start": 0.0, "end": 1.2, "text": "hello"},
        {"start": 1.2, "end": 2.5, "text": "world"},
    ]
}


@pytest.fixture
def settings(tmp_path) -> Settings:
    data = tmp_path / "data"
    s = Settings(
        data_dir=str(data),
        media_dir=str(data / "media"),
        metadata_dir=str(data / "metadata"),
        transcripts_dir=str(data / "transcripts"),
        poll_interval_seconds=0.05,
        tool_timeout_seconds=30,
    )
    s.ensure_directories()
    return s


@pytest.fixture
def hello_runner() -> FakeRunner:
    return FakeRunner(document=HELLO_WORLD)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """
    Attach request/response payloads into pytest-html report.

    In tests, store payloads like:
      item._api_logs = [{"title": "...", "request": ..., "response": ...}, ...]
    """
    outcome = yield
    rep = outcome.get_result()

    if rep.when != "call":
        return

    api_logs = getattr(item, "_api_logs", None)
    if not api_logs:
        return

    extras = getattr(rep, "extras", [])

    try:
        from pytest_html import extras as html_extras
    except ImportError:
        rep.extras = extras
        return

    for entry in api_logs:
        title = entry.get("title", "API Call")
        html = f"""
        <div style="font-family: ui-monospace, SFMono-Regular, Menlo, Monaco, Consolas, monospace;">
          <h4 style="margin:8px 0;">{title}</h4>
          <details style="margin:6px 0;">
            <summary><b>Request</b></summary>
            <pre style="background:#0b1020;color:#cfe3ff;padding:10px;border-radius:8px;overflow:auto;">{pretty_json(entry.get("request", {}))}</pre>
          </details>
          <details style="margin:6px 0;">
            <summary><b>Response</b></summary>
            <pre style="background:#0b1020;color:#cfe3ff;padding:10px;border-radius:8px;overflow:auto;">{pretty_json(entry.get("response", {}))}</pre>
          </details>
        </div>
        """
        extras.append(html_extras.html(html))

    rep.extras = extras
