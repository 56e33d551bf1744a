import base64
import io
import pathlib
import sys
import unittest
from unittest import mock

from PIL import Image, ImageChops

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "scripts"))

from canvas_forge import api
from canvas_forge.core.contracts import GenerationRequest, ReferenceImage
from canvas_forge.core.errors import EmptyResultError, ValidationError
from canvas_forge.providers.stability import StabilityAdapter
from canvas_forge.watermark import WatermarkCompositor


def _png_bytes(size, color=(30, 160, 90), mode="RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def _png_b64(size) -> str:
    return base64.b64encode(_png_bytes(size)).decode("ascii")


def _decode(b64: str) -> Image.Image:
    with Image.open(io.BytesIO(base64.b64decode(b64))) as img:
        img.load()
        return img.convert("RGBA")


class RecordingAdapter:
    name = "recording"

    def __init__(self, image_b64=None, error=None) -> None:
        self.image_b64 = image_b64 or _png_b64((512, 512))
        self.error = error
        self.calls = []

    async def generate_from_text(self, prompt, aspect_ratio, style):
        self.calls.append(("text", prompt, aspect_ratio, style))
        if self.error:
            raise self.error
        return self.image_b64

    async def generate_from_prompt_and_images(self, prompt, reference_images, aspect_ratio, style):
        self.calls.append(("images", prompt, len(reference_images), aspect_ratio, style))
        if self.error:
            raise self.error
        return self.image_b64


def _ref(name: str, size: int = 2048) -> ReferenceImage:
    return ReferenceImage.from_bytes(_png_bytes((8, 8)) + b"\0" * size, name=name)


class TestGenerateImage(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.logo_loader = mock.Mock(return_value=_png_bytes((120, 60), (255, 255, 255, 255), "RGBA"))
        self.compositor = WatermarkCompositor(logo_loader=self.logo_loader)

    async def test_text_only_request(self) -> None:
        adapter = RecordingAdapter()
        request = GenerationRequest(prompt="a red bicycle on a beach", aspect_ratio="1:1", style="Anime")
        result = await api.generate_image(request, adapter=adapter, compositor=self.compositor)
        self.assertEqual(adapter.calls, [("text", "a red bicycle on a beach", "1:1", "Anime")])
        output = _decode(result.image_b64)
        self.assertEqual(output.size, (512, 512))
        diff = ImageChops.difference(output, _decode(adapter.image_b64)).convert("RGB").getbbox()
        self.assertEqual(diff[2:], (492, 492))
        self.assertTrue(result.data_url().startswith("data:image/png;base64,"))

    async def test_reference_images_use_image_path(self) -> None:
        adapter = RecordingAdapter()
        request = GenerationRequest(
            prompt="the cat from image 1 in the garden of image 2",
            reference_images=[_ref("cat.png"), _ref("garden.png")],
            aspect_ratio="16:9",
            style="Painting",
        )
        await api.generate_image(request, adapter=adapter, compositor=self.compositor)
        self.assertEqual(adapter.calls[0][0], "images")
        self.assertEqual(adapter.calls[0][2], 2)

    async def test_eleven_images_rejected_before_adapter(self) -> None:
        adapter = RecordingAdapter()
        request = GenerationRequest(prompt="collage", reference_images=[_ref(f"{i}.png") for i in range(11)])
        with self.assertRaises(ValidationError):
            await api.generate_image(request, adapter=adapter, compositor=self.compositor)
        self.assertEqual(adapter.calls, [])
        self.logo_loader.assert_not_called()

    async def test_oversized_file_rejected_with_name(self) -> None:
        adapter = RecordingAdapter()
        request = GenerationRequest(prompt="collage", reference_images=[_ref("holiday.png", size=5 * 1024 * 1024)])
        with self.assertRaises(ValidationError) as ctx:
            await api.generate_image(request, adapter=adapter, compositor=self.compositor)
        self.assertIn("holiday.png", str(ctx.exception))
        self.assertEqual(adapter.calls, [])

    async def test_blank_prompt_rejected(self) -> None:
        adapter = RecordingAdapter()
        with self.assertRaises(ValidationError):
            await api.generate_image(GenerationRequest(prompt="  \n"), adapter=adapter, compositor=self.compositor)
        self.assertEqual(adapter.calls, [])

    async def test_empty_result_skips_watermark(self) -> None:
        adapter = RecordingAdapter(error=EmptyResultError("No image was returned."))
        with self.assertRaises(EmptyResultError):
            await api.generate_image(GenerationRequest(prompt="a cat"), adapter=adapter, compositor=self.compositor)
        self.logo_loader.assert_not_called()

    async def test_stability_end_to_end(self) -> None:
        response = mock.Mock(status_code=200)
        response.json.return_value = {"image": _png_b64((512, 512))}
        adapter = StabilityAdapter(api_key="sk-test", translate_prompts=False)
        request = GenerationRequest(prompt="a red bicycle on a beach", aspect_ratio="1:1", style="Anime")
        with mock.patch("canvas_forge.providers.stability.requests.post", return_value=response) as post:
            result = await api.generate_image(request, adapter=adapter, compositor=self.compositor)
        form = post.call_args.kwargs["data"]
        self.assertEqual(form["style_preset"], "anime")
        self.assertEqual(form["aspect_ratio"], "1:1")
        output = _decode(result.image_b64)
        self.assertEqual(output.size, (512, 512))
        # 120x60 logo scaled to 48x24 and anchored 20px from the corner.
        diff = ImageChops.difference(output, _decode(response.json.return_value["image"]))
        self.assertEqual(diff.convert("RGB").getbbox(), (444, 468, 492, 492))


class TestModuleFunctions(unittest.IsolatedAsyncioTestCase):
    async def test_blank_prompt_never_builds_adapter(self) -> None:
        with mock.patch.object(api, "build_adapter") as build:
            with self.assertRaises(ValidationError):
                await api.generate_from_text("", "1:1", "Anime", provider="stability")
        build.assert_not_called()

    async def test_generate_from_text_uses_configured_provider(self) -> None:
        adapter = RecordingAdapter()
        with mock.patch.object(api, "build_adapter", return_value=adapter) as build:
            result = await api.generate_from_text("a fox", "4:3", "3D", provider="flux", api_key="k")
        build.assert_called_once_with("flux", api_key="k")
        self.assertEqual(result, adapter.image_b64)

    async def test_generate_from_prompt_and_images_coerces_inputs(self) -> None:
        adapter = RecordingAdapter()
        result = await api.generate_from_prompt_and_images(
            "merge", [_png_bytes((4, 4)), _ref("b.png")], "1:1", "Anime", adapter=adapter
        )
        self.assertEqual(adapter.calls, [("images", "merge", 2, "1:1", "Anime")])
        self.assertEqual(result, adapter.image_b64)


if __name__ == "__main__":
    unittest.main()
