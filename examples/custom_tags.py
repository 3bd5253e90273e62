"""
Custom tag example.

Demonstrates recognizing a non-standard HLS tag with a tag mapper and a custom
tag parser.
"""

from manifestkit import CustomTagMapper, CustomTagParser, parse_manifest

MEDIA = """#EXTM3U
#EXT-X-TARGETDURATION:10
#ZEN-TOTAL-DURATION:20.5
#EXTINF:10,
seg-1.ts
#EXTINF:10.5,
seg-2.ts
#EXT-X-ENDLIST
"""

def main():
    manifest = parse_manifest(
        manifest_string=MEDIA,
        src="https://example.com/vod/index.m3u8",
        # Rewrite the vendor tag into one the parser below understands
        custom_tag_mappers=[CustomTagMapper(
            expression=r"^#ZEN-TOTAL-DURATION",
            map=lambda line: f"#TOTAL-DURATION:{line.split(':')[1]}",
        )],
        custom_tag_parsers=[CustomTagParser(
            expression=r"^#TOTAL-DURATION",
            custom_type="totalDuration",
            data_parser=lambda line: float(line.split(":")[1]),
        )],
    )

    print(f"Total duration: {manifest.custom['totalDuration']}s")
    print(f"Segments: {[segment.uri for segment in manifest.segments]}")

if __name__ == "__main__":
    main()
