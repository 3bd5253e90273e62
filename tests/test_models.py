import pytest

from manifestkit.models import Manifest, Playlist, PlaylistCollection


def test_playlist_collection_index_and_uri_access():
    low = Playlist(uri="low.m3u8")
    high = Playlist(uri="high.m3u8")
    playlists = PlaylistCollection([low, high])

    playlists.register("low.m3u8", low)
    playlists["high.m3u8"] = high

    assert playlists[0] is playlists["low.m3u8"] is low
    assert playlists[1] is playlists["high.m3u8"] is high
    assert len(playlists) == 2
    assert playlists.has_uri("low.m3u8")
    assert not playlists.has_uri("missing.m3u8")


def test_playlist_collection_missing_uri():
    playlists = PlaylistCollection([Playlist(uri="low.m3u8")])

    with pytest.raises(KeyError):
        playlists["low.m3u8"]
    assert playlists.get("low.m3u8") is None
    assert playlists.get(5, "default") == "default"
    assert playlists.get(0) is playlists[0]


def test_playlist_collection_replacing_index_moves_alias():
    old = Playlist(uri="low.m3u8")
    new = Playlist(uri="low.m3u8", attributes={"BANDWIDTH": 1})
    playlists = PlaylistCollection([old])
    playlists.register("low.m3u8", old)

    playlists[0] = new

    assert playlists["low.m3u8"] is new


def test_playlist_collection_deleting_index_drops_alias():
    low = Playlist(uri="low.m3u8")
    high = Playlist(uri="high.m3u8")
    playlists = PlaylistCollection([low, high])
    playlists.register("low.m3u8", low)
    playlists.register("high.m3u8", high)

    del playlists[0]

    assert list(playlists) == [high]
    assert dict(playlists.by_uri) == {"high.m3u8": high}


def test_playlist_collection_delete_alias_only():
    low = Playlist(uri="low.m3u8")
    playlists = PlaylistCollection([low])
    playlists.register("low.m3u8", low)

    del playlists["low.m3u8"]

    assert playlists[0] is low
    assert not playlists.has_uri("low.m3u8")


def test_playlist_collection_alias_outside_list():
    group_playlist = Playlist()
    playlists = PlaylistCollection()

    playlists.register("placeholder-uri-AUDIO-audio-en", group_playlist)

    assert len(playlists) == 0
    assert playlists["placeholder-uri-AUDIO-audio-en"] is group_playlist


def test_playlist_collection_by_uri_is_read_only():
    playlists = PlaylistCollection()

    with pytest.raises(TypeError):
        playlists.by_uri["x"] = Playlist()


def test_manifest_is_master():
    assert Manifest(playlists=PlaylistCollection()).is_master
    assert not Manifest().is_master


def _registered(*uris):
    playlists = PlaylistCollection([Playlist(uri=uri) for uri in uris])
    for playlist in playlists:
        playlists.register(playlist.uri, playlist)
    return playlists


def test_playlist_collection_pop_drops_alias():
    playlists = _registered("a", "b")

    removed = playlists.pop()

    assert removed.uri == "b"
    assert playlists.get("b") is None
    assert playlists["a"] is playlists[0]


def test_playlist_collection_pop_index():
    playlists = _registered("a", "b")

    playlists.pop(0)

    assert dict(playlists.by_uri) == {"b": playlists[0]}


def test_playlist_collection_remove_drops_alias():
    playlists = _registered("a", "b")

    playlists.remove(playlists[0])

    assert [playlist.uri for playlist in playlists] == ["b"]
    assert not playlists.has_uri("a")
    with pytest.raises(ValueError):
        playlists.remove(Playlist(uri="missing"))


def test_playlist_collection_remove_uses_identity():
    first = Playlist(uri="same")
    second = Playlist(uri="same")
    playlists = PlaylistCollection([first, second])
    playlists.register("same", second)

    playlists.remove(second)

    assert playlists[0] is first
    assert not playlists.has_uri("same")


def test_playlist_collection_clear_drops_aliases():
    playlists = _registered("c")
    group_playlist = Playlist()
    playlists.register("placeholder-uri-AUDIO-audio-en", group_playlist)

    playlists.clear()

    assert len(playlists) == 0
    assert playlists.get("c") is None
    assert playlists["placeholder-uri-AUDIO-audio-en"] is group_playlist


def test_playlist_collection_slice_assignment_drops_aliases():
    playlists = _registered("a", "b", "c")

    playlists[0:2] = [Playlist(uri="d")]

    assert [playlist.uri for playlist in playlists] == ["d", "c"]
    assert list(playlists.by_uri) == ["c"]


def test_playlist_collection_adding_does_not_register():
    playlists = _registered("a")

    playlists.append(Playlist(uri="b"))
    playlists.insert(0, Playlist(uri="c"))
    playlists += [Playlist(uri="d")]

    assert len(playlists) == 4
    assert list(playlists.by_uri) == ["a"]
    assert playlists["a"] is playlists[1]


def test_playlist_collection_contains_uri():
    playlists = _registered("uri-0")

    assert "uri-0" in playlists
    assert "uri-1" not in playlists
    assert playlists[0] in playlists
    assert Playlist(uri="other") not in playlists
