import os
from videolens.services.scratch import ScratchSpace, cleanup_scratch


def test_scratch_paths_are_keyed_by_job(tmp_path):
    a = ScratchSpace(1, root=str(tmp_path))
    b = ScratchSpace(2, root=str(tmp_path))
    assert a.video_path != b.video_path
    assert a.frame_path(1).endswith(os.path.join("job_1", "frame_1.jpg"))
    assert a.audio_path.endswith("audio.mp3")


def test_release_deletes_everything(tmp_path):
    scratch = ScratchSpace(1, root=str(tmp_path)).ensure()
    for path in (scratch.video_path, scratch.audio_path, scratch.frame_path(1)):
        with open(path, "wb") as f:
            f.write(b"data")

    assert scratch.release() == 3
    assert not os.path.exists(scratch.root)
    assert scratch.released


def test_release_is_idempotent(tmp_path):
    """test releasing twice, or releasing nothing, is harmless"""
    scratch = ScratchSpace(1, root=str(tmp_path)).ensure()
    with open(scratch.video_path, "wb") as f:
        f.write(b"data")

    assert scratch.release() == 1
    assert scratch.release() == 0
    assert cleanup_scratch(1, root=str(tmp_path)) == 0
    assert cleanup_scratch(99, root=str(tmp_path)) == 0


def test_default_root_is_scratch_dir(scratch_root):
    scratch = ScratchSpace(5)
    assert str(scratch.root) == str(scratch_root / "job_5")


def test_released_handle_skips_repeat_cleanup(tmp_path):
    """test a handle releases once until it is ensured again"""
    scratch = ScratchSpace(3, root=str(tmp_path)).ensure()
    scratch.release()

    os.makedirs(scratch.root)
    with open(scratch.frame_path(1), "wb") as f:
        f.write(b"late")

    assert scratch.release() == 0
    assert os.path.exists(scratch.frame_path(1))

    assert scratch.ensure().released is False
    assert scratch.release() == 1
    assert not os.path.exists(scratch.root)
