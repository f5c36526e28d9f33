"""Tests for playlist decoding and encoding"""

import io
from decimal import Decimal

import pytest

from hls_downloader.models import (
    ByteRange,
    DateRange,
    IFrameStream,
    KeyInfo,
    MapInfo,
    MasterPlaylist,
    MediaPlaylist,
    MediaSegment,
    Rendition,
    SessionData,
    StartPoint,
    VariantStream,
)
from hls_downloader.playlist import (
    LineReader,
    MalformedLineError,
    PlaylistError,
    decode,
    dumps,
    encode,
    loads,
)


class TestDecodeMedia:
    """Test media playlist decoding"""

    def test_basic_media_playlist(self, media_playlist_text):
        playlist = loads(media_playlist_text)
        assert isinstance(playlist, MediaPlaylist)
        assert not playlist.is_variant
        assert [segment.uri for segment in playlist.segments] == ["seg0.ts", "seg1.ts"]
        assert playlist.segments[0].duration == "9.009"
        assert playlist.endlist
        assert playlist.total_duration() == Decimal("18.018")

    def test_segment_tags_attach_to_next_segment(self):
        playlist = loads(
            "#EXTM3U\n"
            "#EXT-X-VERSION:7\n"
            "#EXT-X-TARGETDURATION:10\n"
            "#EXT-X-MEDIA-SEQUENCE:42\n"
            "#EXT-X-PLAYLIST-TYPE:VOD\n"
            '#EXT-X-KEY:METHOD=AES-128,URI="key.bin",IV=0x0123456789abcdef0123456789abcdef\n'
            '#EXT-X-MAP:URI="init.mp4",BYTERANGE="720@0"\n'
            "#EXT-X-PROGRAM-DATE-TIME:2024-01-01T00:00:00.000Z\n"
            "#EXTINF:10.000,Intro\n"
            "#EXT-X-BYTERANGE:1000@720\n"
            "seg0.m4s\n"
            "#EXT-X-DISCONTINUITY\n"
            "#EXTINF:9.5,\n"
            "seg1.m4s\n"
            "#EXT-X-ENDLIST\n"
        )
        assert playlist.version == "7"
        assert playlist.target_duration == "10"
        assert playlist.media_sequence == "42"
        assert playlist.playlist_type == "VOD"
        assert playlist.sequence_numbers() == [42, 43]

        first, second = playlist.segments
        assert first.title == "Intro"
        assert first.duration == "10.000"
        assert first.key == KeyInfo(method="AES-128", uri="key.bin", iv="0x0123456789abcdef0123456789abcdef")
        assert first.map == MapInfo(uri="init.mp4", byterange="720@0")
        assert first.byte_range == ByteRange(length="1000", offset="720")
        assert first.program_date_time == "2024-01-01T00:00:00.000Z"
        assert not first.discontinuity

        assert second.discontinuity
        assert second.title is None
        assert second.key is None

    def test_daterange_client_attributes(self):
        playlist = loads(
            "#EXTM3U\n"
            '#EXT-X-DATERANGE:ID="ad1",START-DATE="2024-01-01T00:00:00Z",DURATION=30.0,X-AD-ID="1234",SCTE35-OUT=0xFC30\n'
            "#EXTINF:6,\n"
            "seg0.ts\n"
        )
        date_range = playlist.segments[0].date_range
        assert date_range.id == "ad1"
        assert date_range.duration == "30.0"
        assert date_range.scte35_out == "0xFC30"
        assert date_range.client_attributes == {"X-AD-ID": "1234"}

    def test_comments_blank_lines_and_unknown_tags_are_skipped(self):
        playlist = loads(
            "#EXTM3U\n"
            "# a comment\n"
            "\n"
            "#EXT-X-ALLOW-CACHE:YES\n"
            "#EXTINF:4,\n"
            "seg0.ts\n"
        )
        assert [segment.uri for segment in playlist.segments] == ["seg0.ts"]

    def test_crlf_and_byte_order_mark(self):
        playlist = decode(io.BytesIO("\ufeff#EXTM3U\r\n#EXTINF:4,\r\nseg0.ts\r\n".encode("utf-8")))
        assert playlist.segments[0].uri == "seg0.ts"

    def test_accepts_line_reader(self, media_playlist_text):
        reader = LineReader(io.BytesIO(media_playlist_text.encode("utf-8")), chunk_size=8)
        assert len(decode(reader).segments) == 2

    def test_live_playlist_has_no_endlist(self):
        playlist = loads("#EXTM3U\n#EXT-X-TARGETDURATION:6\n#EXTINF:6,\nlive0.ts\n")
        assert not playlist.endlist


class TestDecodeErrors:
    """Test rejected playlists"""

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "#EXTINF:4,\nseg0.ts\n",
            "#EXTM3U\n#EXTINF:4\nseg0.ts\n",
            "#EXTM3U\n#EXTINF:,title\nseg0.ts\n",
            "#EXTM3U\n#EXTINF:4,\n#EXTINF:4,\nseg0.ts\n",
            "#EXTM3U\n#EXTINF:4,\n",
            "#EXTM3U\nseg0.ts\n",
            "#EXTM3U\n#EXTINF:4,\n#EXT-X-ENDLIST\n",
            "#EXTM3U\n#EXTINF:4,\nseg0.ts\n#EXT-X-ENDLIST\n#EXTINF:4,\nseg1.ts\n",
            '#EXTM3U\n#EXT-X-KEY:METHOD=AES-128,URI="key.bin\n#EXTINF:4,\nseg0.ts\n',
            "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\n",
            "#EXTM3U\n#EXTM3U\n",
        ],
    )
    def test_malformed(self, text):
        with pytest.raises(MalformedLineError):
            loads(text)

    def test_media_and_master_tags_cannot_mix(self):
        with pytest.raises(PlaylistError):
            loads("#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\nlow.m3u8\n#EXTINF:4,\nseg0.ts\n")

    def test_invalid_utf8(self):
        with pytest.raises(MalformedLineError):
            decode(io.BytesIO(b"#EXTM3U\n#EXTINF:4,\xff\nseg0.ts\n"))

    def test_segment_longer_than_target(self):
        text = "#EXTM3U\n#EXT-X-TARGETDURATION:10\n#EXTINF:10.6,\nseg0.ts\n"
        with pytest.raises(PlaylistError):
            loads(text)
        playlist = loads(text, strict=False)
        assert playlist.segments[0].duration == "10.6"

    def test_duration_rounding_to_target(self):
        playlist = loads("#EXTM3U\n#EXT-X-TARGETDURATION:10\n#EXTINF:10.4,\nseg0.ts\n")
        assert playlist.segments[0].duration == "10.4"

    def test_non_integer_media_sequence(self):
        with pytest.raises(PlaylistError):
            loads("#EXTM3U\n#EXT-X-MEDIA-SEQUENCE:1.5\n#EXTINF:4,\nseg0.ts\n")

    def test_non_integer_media_sequence_counts_from_zero(self):
        playlist = loads("#EXTM3U\n#EXT-X-MEDIA-SEQUENCE:1.5\n#EXTINF:4,\nseg0.ts\n", strict=False)
        assert playlist.sequence_numbers() == [0]


class TestDecodeMaster:
    """Test master playlist decoding"""

    def test_master_playlist(self, master_playlist_text):
        playlist = loads(master_playlist_text)
        assert isinstance(playlist, MasterPlaylist)
        assert playlist.is_variant
        assert playlist.version == "4"

        assert len(playlist.renditions) == 1
        assert playlist.renditions[0].group_id == "aud"
        assert playlist.renditions[0].uri == "audio/en.m3u8"

        low, high = playlist.variants
        assert low.bandwidth == "1280000"
        assert low.codecs == "avc1.4d401f,mp4a.40.2"
        assert low.uri == "low/index.m3u8"
        assert high.closed_captions == "NONE"
        assert high.uri == "high/index.m3u8"

        assert playlist.i_frame_variants == [IFrameStream(bandwidth="86000", uri="low/iframe.m3u8")]

    def test_i_frame_stream_uri_on_next_line(self):
        playlist = loads("#EXTM3U\n#EXT-X-I-FRAME-STREAM-INF:BANDWIDTH=86000\niframe.m3u8\n")
        assert playlist.i_frame_variants[0].uri == "iframe.m3u8"

    def test_session_tags(self):
        playlist = loads(
            "#EXTM3U\n"
            '#EXT-X-SESSION-DATA:DATA-ID="com.example.title",VALUE="Example"\n'
            '#EXT-X-SESSION-KEY:METHOD=AES-128,URI="session.key"\n'
            "#EXT-X-INDEPENDENT-SEGMENTS\n"
            "#EXT-X-START:TIME-OFFSET=-12.5,PRECISE=YES\n"
            "#EXT-X-STREAM-INF:BANDWIDTH=1\n"
            "a.m3u8\n"
        )
        assert playlist.session_data == [SessionData(data_id="com.example.title", value="Example")]
        assert playlist.session_keys == [KeyInfo(method="AES-128", uri="session.key")]
        assert playlist.independent_segments
        assert playlist.start == StartPoint(time_offset="-12.5", precise="YES")


class TestEncode:
    """Test canonical encoding"""

    def test_media_output_order(self):
        playlist = MediaPlaylist(
            version="3",
            target_duration="10",
            media_sequence="1",
            endlist=True,
            segments=[
                MediaSegment(
                    duration="9.009",
                    uri="seg0.ts",
                    discontinuity=True,
                    program_date_time="2024-01-01T00:00:00Z",
                    key=KeyInfo(method="AES-128", uri="k.bin"),
                ),
                MediaSegment(duration="4", title="Outro", uri="seg1.ts"),
            ],
        )
        assert dumps(playlist) == (
            "#EXTM3U\n"
            "#EXT-X-VERSION:3\n"
            "#EXT-X-TARGETDURATION:10\n"
            "#EXT-X-MEDIA-SEQUENCE:1\n"
            "#EXTINF:9.009,\n"
            "#EXT-X-DISCONTINUITY\n"
            '#EXT-X-KEY:METHOD=AES-128,URI="k.bin"\n'
            "#EXT-X-PROGRAM-DATE-TIME:2024-01-01T00:00:00Z\n"
            "seg0.ts\n"
            "#EXTINF:4,Outro\n"
            "seg1.ts\n"
            "#EXT-X-ENDLIST\n"
        )

    def test_master_output_order(self):
        playlist = MasterPlaylist(
            independent_segments=True,
            variants=[VariantStream(bandwidth="640000", resolution="640x360", closed_captions="NONE", uri="low.m3u8")],
            renditions=[Rendition(type="SUBTITLES", group_id="subs", name="English", uri="subs/en.m3u8")],
        )
        assert dumps(playlist) == (
            "#EXTM3U\n"
            '#EXT-X-MEDIA:TYPE=SUBTITLES,URI="subs/en.m3u8",GROUP-ID="subs",NAME="English"\n'
            "#EXT-X-STREAM-INF:BANDWIDTH=640000,RESOLUTION=640x360,CLOSED-CAPTIONS=NONE\n"
            "low.m3u8\n"
            "#EXT-X-INDEPENDENT-SEGMENTS\n"
        )

    def test_encode_writes_bytes(self, media_playlist_text):
        buffer = io.BytesIO()
        encode(loads(media_playlist_text), buffer)
        assert buffer.getvalue() == media_playlist_text.encode("utf-8")

    def test_master_without_master_tags_is_rejected(self):
        with pytest.raises(PlaylistError):
            dumps(MasterPlaylist(version="3", independent_segments=True))

    def test_master_with_only_session_data_stays_master(self):
        playlist = MasterPlaylist(session_data=[SessionData(data_id="com.example.title", value="Example")])
        assert isinstance(loads(dumps(playlist)), MasterPlaylist)


class TestRoundTrip:
    """decode(encode(model)) keeps every populated field"""

    def test_media_round_trip(self):
        playlist = MediaPlaylist(
            version="6",
            target_duration="10",
            media_sequence="7",
            discontinuity_sequence="2",
            playlist_type="EVENT",
            independent_segments=True,
            start=StartPoint(time_offset="3.0"),
            segments=[
                MediaSegment(
                    duration="10.00",
                    title='Chapter "1", part a',
                    byte_range=ByteRange(length="500"),
                    key=KeyInfo(method="SAMPLE-AES", uri="skd://key", keyformat="com.apple.streamingkeydelivery", keyformatversions="1"),
                    map=MapInfo(uri="init.mp4"),
                    uri="https://cdn.example.com/seg0.ts",
                ),
                MediaSegment(
                    duration="8.25",
                    discontinuity=True,
                    date_range=DateRange(
                        id="splice",
                        class_="com.example.ad",
                        start_date="2024-01-01T00:00:00Z",
                        planned_duration="15",
                        client_attributes={"X-CAMPAIGN": "spring sale", "X-SLOT": "2"},
                        end_on_next="YES",
                    ),
                    uri="seg1.ts",
                ),
            ],
            endlist=True,
        )
        decoded = loads(dumps(playlist))
        assert decoded.model_dump() == playlist.model_dump()

    def test_master_round_trip(self, master_playlist_text):
        playlist = loads(master_playlist_text)
        playlist.session_data.append(SessionData(data_id="com.example.lang", uri="lang.json", language="en"))
        decoded = loads(dumps(playlist))
        assert decoded.model_dump() == playlist.model_dump()

    def test_normalization_is_stable(self, master_playlist_text):
        once = dumps(loads(master_playlist_text))
        assert dumps(loads(once)) == once

    def test_empty_title_round_trip(self):
        playlist = MediaPlaylist(segments=[MediaSegment(duration="4", title="", uri="a.ts")])
        assert playlist.segments[0].title is None
        decoded = loads(dumps(playlist))
        assert decoded.model_dump() == playlist.model_dump()
