import base64
import contextlib
import importlib.util
import io
import os
import pathlib
import sys
import tempfile
import unittest
from unittest import mock

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "scripts"))
SPEC = importlib.util.spec_from_file_location("canvas_forge_cli", ROOT / "scripts" / "canvas_forge_cli.py")
if SPEC is None or SPEC.loader is None:
    raise RuntimeError("Unable to load canvas_forge_cli module for tests")
canvas_forge_cli = importlib.util.module_from_spec(SPEC)
sys.modules["canvas_forge_cli"] = canvas_forge_cli
SPEC.loader.exec_module(canvas_forge_cli)
from canvas_forge.core.contracts import GenerationResult
from canvas_forge.core.errors import ConfigurationError, TransportError


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\0" * 32


def _run_main(argv):
    stdout = io.StringIO()
    stderr = io.StringIO()
    with mock.patch.object(sys, "argv", ["canvas_forge_cli.py", *argv]):
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
            code = canvas_forge_cli.main()
    return code, stdout.getvalue(), stderr.getvalue()


class TestDotenvDiscovery(unittest.TestCase):
    def test_finds_nearest_parent_dotenv(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = pathlib.Path(tmpdir).resolve()
            (root / ".env").write_text("STABILITY_API_KEY=sk-test\n", encoding="utf-8")
            nested = root / "a" / "b"
            nested.mkdir(parents=True)
            with mock.patch.object(canvas_forge_cli.Path, "cwd", return_value=nested):
                self.assertEqual(canvas_forge_cli._find_repo_dotenv(), root / ".env")


class TestLoadImages(unittest.TestCase):
    def test_too_many_images_exit(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            paths = []
            for idx in range(11):
                path = pathlib.Path(tmpdir) / f"ref-{idx}.png"
                path.write_bytes(PNG_BYTES)
                paths.append(str(path))
            stderr = io.StringIO()
            with contextlib.redirect_stderr(stderr):
                with self.assertRaises(SystemExit) as ctx:
                    canvas_forge_cli._load_images(paths)
        self.assertEqual(ctx.exception.code, 2)
        self.assertIn("at most 10", stderr.getvalue())

    def test_valid_images_loaded(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "hero.png"
            path.write_bytes(PNG_BYTES)
            images = canvas_forge_cli._load_images([str(path)])
        self.assertEqual([image.name for image in images], ["hero.png"])
        self.assertEqual(images[0].mime_type, "image/png")

    def test_missing_image_path_exit(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            missing = str(pathlib.Path(tmpdir) / "nowhere.png")
            stderr = io.StringIO()
            with contextlib.redirect_stderr(stderr):
                with self.assertRaises(SystemExit) as ctx:
                    canvas_forge_cli._load_images([missing])
        self.assertEqual(ctx.exception.code, 2)
        self.assertIn("nowhere.png", stderr.getvalue())


class TestMain(unittest.TestCase):
    def test_list_providers(self) -> None:
        code, stdout, _ = _run_main(["--list-providers"])
        self.assertEqual(code, 0)
        for name in ("stability", "huggingface", "gemini", "openai", "flux"):
            self.assertIn(name, stdout)

    def test_writes_watermarked_file(self) -> None:
        result = GenerationResult(image_b64=base64.b64encode(PNG_BYTES).decode("ascii"))
        with tempfile.TemporaryDirectory() as tmpdir:
            with mock.patch.object(canvas_forge_cli, "_load_repo_dotenv"), mock.patch.object(
                canvas_forge_cli, "build_adapter", return_value=mock.Mock()
            ) as build, mock.patch.object(
                canvas_forge_cli, "generate_image", new=mock.AsyncMock(return_value=result)
            ):
                code, stdout, _ = _run_main(
                    ["--prompt", "a red bicycle on a beach", "--style", "Anime", "--provider", "stability", "--out", tmpdir]
                )
            written = pathlib.Path(tmpdir) / "a_red_bicycle_on_a_beach_watermarked.png"
            self.assertEqual(code, 0)
            self.assertEqual(written.read_bytes(), PNG_BYTES)
            self.assertIn(str(written.name), stdout)
        build.assert_called_once_with("stability")

    def test_missing_credentials_exit_code(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with mock.patch.object(canvas_forge_cli, "_load_repo_dotenv"), mock.patch.dict(
                os.environ, {}, clear=True
            ):
                code, _, stderr = _run_main(["--prompt", "a cat", "--provider", "stability", "--out", tmpdir])
        self.assertEqual(code, 2)
        self.assertIn("STABILITY_API_KEY", stderr)

    def test_generation_failure_exit_code(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with mock.patch.object(canvas_forge_cli, "_load_repo_dotenv"), mock.patch.object(
                canvas_forge_cli, "build_adapter", return_value=mock.Mock()
            ), mock.patch.object(
                canvas_forge_cli,
                "generate_image",
                new=mock.AsyncMock(side_effect=TransportError("Stability API error: insufficient credits")),
            ):
                code, _, stderr = _run_main(["--prompt", "a cat", "--out", tmpdir])
        self.assertEqual(code, 1)
        self.assertIn("insufficient credits", stderr)

    def test_unknown_provider_exit_code(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with mock.patch.object(canvas_forge_cli, "_load_repo_dotenv"):
                code, _, stderr = _run_main(["--prompt", "a cat", "--provider", "nope", "--out", tmpdir])
        self.assertEqual(code, 2)
        self.assertIn("nope", stderr)

    def test_missing_image_exit_code(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with mock.patch.object(canvas_forge_cli, "_load_repo_dotenv"):
                with self.assertRaises(SystemExit) as ctx:
                    _run_main(["--prompt", "a cat", "--image", str(pathlib.Path(tmpdir) / "gone.png"), "--out", tmpdir])
        self.assertEqual(ctx.exception.code, 2)

    def test_model_option_passed_to_adapter(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with mock.patch.object(canvas_forge_cli, "_load_repo_dotenv"), mock.patch.object(
                canvas_forge_cli, "build_adapter", side_effect=ConfigurationError("bad model")
            ) as build:
                code, _, _ = _run_main(["--prompt", "a cat", "--provider", "gemini", "--model", "imagen-4", "--out", tmpdir])
        self.assertEqual(code, 2)
        build.assert_called_once_with("gemini", model="imagen-4")


if __name__ == "__main__":
    unittest.main()
