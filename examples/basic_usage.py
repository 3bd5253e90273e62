"""
Basic ManifestKit usage example.

Demonstrates parsing an HLS master playlist and looking up its playlists.
"""

from manifestkit import parse_manifest

MASTER = """#EXTM3U
#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="aud",NAME="English",LANGUAGE="en",DEFAULT=YES,URI="audio/en.m3u8"
#EXT-X-STREAM-INF:BANDWIDTH=800000,RESOLUTION=640x360,AUDIO="aud"
low/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=2400000,RESOLUTION=1280x720,AUDIO="aud"
high/index.m3u8
"""

def main():
    manifest = parse_manifest(
        manifest_string=MASTER,
        src="https://example.com/vod/master.m3u8"
    )

    for playlist in manifest.playlists:
        print(f"[{playlist.id}] {playlist.attributes['BANDWIDTH']} bps -> {playlist.resolved_uri}")

    # Same object by URI
    high = manifest.playlists["high/index.m3u8"]
    print(f"\nhigh/index.m3u8 is playlist {high.id}")

    english = manifest.media_groups["AUDIO"]["aud"]["English"]
    print(f"English audio: {english.resolved_uri}")

if __name__ == "__main__":
    main()
