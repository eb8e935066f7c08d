# tests/test_rotation_service.py
import datetime

import pytest

from service.rotation_service import RotationService, RotationState


@pytest.fixture
def images_dir(tmp_path):
    folder = tmp_path / "wiki_flowers"
    folder.mkdir()
    for name in ["Rosa canina.jpg", "Bellis perennis.JPG", "Iris.png", "notes.txt", "Allium.jpeg"]:
        (folder / name).write_bytes(b"x")
    (folder / "nested.jpg").mkdir()
    return folder


def _service(tmp_path, images_dir, permutation=None):
    perm_path = None
    if permutation is not None:
        perm_path = tmp_path / "perm.txt"
        perm_path.write_text(permutation)
    return RotationService(str(images_dir), str(perm_path) if perm_path else None, str(tmp_path / "state.txt"))


# =========================
# Listing & permutation
# =========================
def test_list_images_is_sorted_and_filtered(tmp_path, images_dir):
    names = _service(tmp_path, images_dir).list_images()
    assert names == ["Allium.jpeg", "Bellis perennis.JPG", "Iris.png", "Rosa canina.jpg"]


def test_missing_permutation_file_gives_identity(tmp_path, images_dir):
    assert _service(tmp_path, images_dir).load_permutation(4) == [0, 1, 2, 3]


def test_permutation_drops_out_of_range_and_garbage(tmp_path, images_dir):
    service = _service(tmp_path, images_dir, "3, 1, 9, x, 0, -1, 2")
    assert service.load_permutation(4) == [3, 1, 0, 2]


def test_unusable_permutation_falls_back_to_identity(tmp_path, images_dir):
    assert _service(tmp_path, images_dir, "7, 8").load_permutation(3) == [0, 1, 2]


# =========================
# State
# =========================
def test_state_round_trip(tmp_path, images_dir):
    service = _service(tmp_path, images_dir)
    assert service.load_state() is None
    when = datetime.datetime(2024, 5, 17, 23, 59, 59)
    saved = service.save_state(3, now=when)
    assert saved == RotationState(last_changed=when, index=3)
    assert service.load_state() == saved
    assert (tmp_path / "state.txt").read_text() == f"{int(when.timestamp())}\n3"


@pytest.mark.parametrize("content", ["", "1715983199", "yesterday\n2", "1715983199\nthird"])
def test_unreadable_state_is_treated_as_missing(tmp_path, images_dir, content):
    service = _service(tmp_path, images_dir, "3, 1, 0, 2")
    (tmp_path / "state.txt").write_text(content)
    assert service.load_state() is None
    assert service.current_image() == "Rosa canina.jpg"
    assert service.advance().index == 1


def test_current_image_follows_permutation(tmp_path, images_dir):
    service = _service(tmp_path, images_dir, "3, 1, 0, 2")
    assert service.current_image() == "Rosa canina.jpg"
    service.save_state(1)
    assert service.current_image() == "Bellis perennis.JPG"


def test_advance_wraps_around(tmp_path, images_dir):
    service = _service(tmp_path, images_dir, "3, 1, 0, 2")
    service.save_state(3)
    assert service.advance().index == 0
    assert service.current_image() == "Rosa canina.jpg"


def test_current_image_without_images_raises(tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()
    with pytest.raises(FileNotFoundError):
        _service(tmp_path, empty).current_image()


def test_changed_today():
    now = datetime.datetime(2024, 5, 17, 12, 0, 0)
    assert RotationService.changed_today(None, now) is False
    assert RotationService.changed_today(RotationState(now.replace(hour=0), 1), now) is True
    assert RotationService.changed_today(RotationState(now - datetime.timedelta(days=1), 1), now) is False
