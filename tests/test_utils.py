from manifestkit.utils import resolve_url


def test_resolve_url_relative_to_document():
    assert resolve_url("http://example.com/master.m3u8", "media/seg1.ts") == "http://example.com/media/seg1.ts"


def test_resolve_url_nested_path():
    assert resolve_url("http://example.com/a/b/master.m3u8", "../c/seg.ts") == "http://example.com/a/c/seg.ts"


def test_resolve_url_absolute_path_reference():
    assert resolve_url("http://example.com/a/b/master.m3u8", "/root.ts") == "http://example.com/root.ts"


def test_resolve_url_absolute_reference():
    assert resolve_url("http://example.com/master.m3u8", "https://cdn.example.com/seg.ts") == "https://cdn.example.com/seg.ts"


def test_resolve_url_host_without_path():
    assert resolve_url("http://test.com", "test") == "http://test.com/test"


def test_resolve_url_without_base():
    assert resolve_url(None, "foo/bar.ts") == "foo/bar.ts"
    assert resolve_url("", "foo/bar.ts") == "foo/bar.ts"


def test_resolve_url_without_reference():
    assert resolve_url("http://example.com/master.m3u8", None) is None


def test_resolve_url_malformed_base():
    assert resolve_url("http://[::1/master.m3u8", "seg.ts") == "seg.ts"
