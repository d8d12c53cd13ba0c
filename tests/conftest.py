import random

import pytest

from utils.image_store import ImageStore


def make_images(folder, names):
    for name in names:
        (folder / name).write_bytes(b"\x89PNG fake")
    return folder


@pytest.fixture
def image_dir(tmp_path):
    folder = tmp_path / "images"
    folder.mkdir()
    return folder


@pytest.fixture
def store(image_dir):
    return ImageStore(image_dir, rng=random.Random(1234))
