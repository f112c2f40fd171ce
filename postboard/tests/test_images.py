import io
import unittest
from unittest.mock import patch

from PIL import Image

from postboard.errors import InvalidImageError
from postboard.images import normalize_image, store_post_images
from postboard.storage import InMemoryStorageClient


def encode(img, fmt="PNG") -> bytes:
    out = io.BytesIO()
    img.save(out, format=fmt)
    return out.getvalue()


class ImagesTest(unittest.TestCase):
    def test_large_image_is_shrunk_to_webp(self):
        data = encode(Image.new("RGB", (3000, 1500), (0, 128, 255)))
        result = normalize_image(data, max_edge=1000)
        with Image.open(io.BytesIO(result)) as img:
            self.assertEqual(img.format, "WEBP")
            self.assertEqual(img.size, (1000, 500))

    def test_small_image_is_not_upscaled(self):
        data = encode(Image.new("L", (40, 30), 90))
        with Image.open(io.BytesIO(normalize_image(data, max_edge=1000))) as img:
            self.assertEqual(img.size, (40, 30))

    def test_palette_image_is_converted(self):
        data = encode(Image.new("P", (20, 20)), fmt="GIF")
        with Image.open(io.BytesIO(normalize_image(data))) as img:
            self.assertEqual(img.format, "WEBP")

    def test_garbage_raises(self):
        with self.assertRaises(InvalidImageError):
            normalize_image(b"not an image")

    def test_decompression_bomb_raises(self):
        data = encode(Image.new("RGB", (64, 48)))
        with patch("PIL.Image.MAX_IMAGE_PIXELS", 100):
            with self.assertRaises(InvalidImageError):
                normalize_image(data)

    def test_store_post_images_keeps_order(self):
        storage = InMemoryStorageClient()
        uploads = [
            encode(Image.new("RGB", (10, 10))),
            encode(Image.new("RGB", (20, 10))),
        ]
        paths = store_post_images(uploads, storage)
        self.assertEqual(len(paths), 2)
        self.assertEqual(len(set(paths)), 2)
        for path, expected_width in zip(paths, (10, 20)):
            self.assertTrue(path.startswith("posts/"))
            data, content_type = storage.stored_objects[path]
            self.assertEqual(content_type, "image/webp")
            with Image.open(io.BytesIO(data)) as img:
                self.assertEqual(img.width, expected_width)

    def test_one_bad_upload_stores_nothing(self):
        storage = InMemoryStorageClient()
        uploads = [encode(Image.new("RGB", (10, 10))), b"broken"]
        with self.assertRaises(InvalidImageError):
            store_post_images(uploads, storage)
        self.assertEqual(storage.stored_objects, {})


if __name__ == "__main__":
    unittest.main()
