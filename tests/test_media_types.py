from manifestkit.media_types import simple_type_from_source_type


def test_hls_types():
    for mime_type in (
        "application/x-mpegURL",
        "application/vnd.apple.mpegurl",
        "audio/mpegurl",
        "audio/x-mpegurl",
        "video/MPEGURL",
        "application/mpegurl",
    ):
        assert simple_type_from_source_type(mime_type) == "hls"


def test_dash_type():
    assert simple_type_from_source_type("application/dash+xml") == "dash"
    assert simple_type_from_source_type("APPLICATION/DASH+XML") == "dash"


def test_vhs_json_type():
    assert simple_type_from_source_type("application/vnd.vhs+json") == "vhs-json"


def test_other_types():
    assert simple_type_from_source_type("video/mp4") is None
    assert simple_type_from_source_type("application/json") is None
    assert simple_type_from_source_type("") is None
    assert simple_type_from_source_type(None) is None
