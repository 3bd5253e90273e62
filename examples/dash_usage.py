"""
DASH example.

Demonstrates loading an MPD over HTTP and inspecting its placeholder playlists
and audio groups.
"""

import logging

from manifestkit import LoadConfig, load_from_config

# Configure logging to see manifestkit internal logs
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

def main():
    config = LoadConfig(url="https://dash.akamaized.net/envivio/EnvivioDash3/manifest.mpd")

    try:
        manifest = load_from_config(config)
    except Exception as e:
        print(f"Error loading manifest: {e}")
        return

    for playlist in manifest.playlists:
        print(f"{playlist.uri}: {playlist.attributes.get('RESOLUTION')} "
              f"{len(playlist.segments)} segments")

    for label, entry in manifest.media_groups["AUDIO"].get("audio", {}).items():
        print(f"Audio '{label}' ({entry.language}): {entry.playlists[0].uri}")

if __name__ == "__main__":
    main()
