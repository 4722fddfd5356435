import pytest

from egakeru.bitmap_font_loader import (
    FONT_TYPE_BITMAP,
    BitmapFontData,
    BitmapFontLoader,
    BitmapFontPage,
    BitmapFontResourceData,
    Glyph,
    Kerning,
    parse_fnt,
    read_ebf,
    write_ebf,
)
from egakeru.resource_loader import LoaderProperties, ResourceLoadError, ResourceType

FNT_LINES = [
    "# sample font",
    'info face="Metrics" size=21 bold=0 italic=0',
    "common lineHeight=24 base=19 scaleW=512 scaleH=256 pages=1 packed=0",
    'page id=0 file="Metrics.png"',
    "chars count=2",
    "char id=65   x=10 y=20 width=12 height=14 xoffset=-1 yoffset=3 xadvance=11 page=0 chnl=15",
    "char id=66 x=30 y=40 width=9 height=13 xoffset=2 yoffset=-4 xadvance=10 page=0 chnl=15",
    "",
    "kernings count=1",
    "kerning first=65 second=66 amount=-2",
]


def _sample() -> BitmapFontResourceData:
    return BitmapFontResourceData(
        BitmapFontData(
            face="Sample",
            size=16,
            line_height=18,
            baseline=14,
            atlas_size_x=256,
            atlas_size_y=128,
            glyphs=[Glyph(65, 1, 2, 3, 4, -5, 6, 7, 0), Glyph(66, 8, 9, 10, 11, 12, -13, 14, 1)],
            kernings=[Kerning(65, 66, -3)],
            tab_advance=4.0,
        ),
        [BitmapFontPage(0, "sample_0.png"), BitmapFontPage(1, "sample_1.png")],
    )


def test_parse_fnt_header_fields():
    result = parse_fnt(FNT_LINES)
    assert result.data.face == "Metrics"
    assert result.data.size == 21
    assert result.data.line_height == 24
    assert result.data.atlas_size_x == 512
    assert result.data.atlas_size_y == 256


def test_parse_fnt_does_not_read_baseline():
    result = parse_fnt(FNT_LINES)
    assert result.data.baseline == 0


def test_parse_fnt_glyphs_and_kernings():
    result = parse_fnt(FNT_LINES)
    assert result.data.glyphs == [
        Glyph(65, 10, 20, 12, 14, -1, 3, 11, 0),
        Glyph(66, 30, 40, 9, 13, 2, -4, 10, 0),
    ]
    assert result.data.kernings == [Kerning(65, 66, -2)]


def test_parse_fnt_pages():
    result = parse_fnt(FNT_LINES)
    assert result.pages == [BitmapFontPage(0, "Metrics.png")]


def test_parse_fnt_partial_char_line_keeps_parsed_fields():
    result = parse_fnt(["char id=70 x=5"])
    assert result.data.glyphs == [Glyph(codepoint=70, x=5)]


def test_parse_fnt_skips_comments_and_blanks():
    result = parse_fnt(["# only a comment", "", "#another"])
    assert result == BitmapFontResourceData()


def test_write_then_read_round_trip(tmp_path):
    path = tmp_path / "font.ebf"
    data = _sample()
    returned = write_ebf(path, data)
    assert returned is data
    assert read_ebf(path) == data


def test_round_trip_empty_font(tmp_path):
    path = tmp_path / "empty.ebf"
    write_ebf(path, BitmapFontResourceData())
    assert read_ebf(path) == BitmapFontResourceData()


def test_read_rejects_wrong_magic(tmp_path):
    path = tmp_path / "bad.ebf"
    path.write_bytes(b"\x00" * 64)
    with pytest.raises(ResourceLoadError):
        read_ebf(path)


def test_read_rejects_truncated_file(tmp_path):
    path = tmp_path / "font.ebf"
    write_ebf(path, _sample())
    payload = path.read_bytes()
    path.write_bytes(payload[:-10])
    with pytest.raises(ResourceLoadError):
        read_ebf(path)


def test_write_rejects_out_of_range_values(tmp_path):
    data = _sample()
    data.data.glyphs[0].x = -1
    with pytest.raises(ResourceLoadError):
        write_ebf(tmp_path / "font.ebf", data)


def test_loader_imports_fnt_and_writes_ebf(tmp_path):
    (tmp_path / "metrics.fnt").write_text("\n".join(FNT_LINES) + "\n")
    loader = BitmapFontLoader(LoaderProperties(str(tmp_path)))
    resource = loader.load("metrics")
    ebf_path = tmp_path / "metrics.ebf"
    assert resource.type is ResourceType.BITMAP_FONT
    assert resource.full_path == f"{tmp_path}/metrics.ebf"
    assert ebf_path.exists()
    assert read_ebf(ebf_path) == resource.data
    assert resource.data.data.face == "Metrics"
    assert resource.data.data.font_type == FONT_TYPE_BITMAP


def test_loader_prefers_ebf_over_fnt(tmp_path):
    (tmp_path / "font.fnt").write_text("\n".join(FNT_LINES) + "\n")
    write_ebf(tmp_path / "font.ebf", _sample())
    loader = BitmapFontLoader(LoaderProperties(str(tmp_path)))
    resource = loader.load("font")
    assert resource.data == _sample()
    assert resource.full_path == f"{tmp_path}/font.ebf"


def test_loader_missing_file_raises(tmp_path):
    loader = BitmapFontLoader(LoaderProperties(str(tmp_path)))
    with pytest.raises(ResourceLoadError):
        loader.load("absent")


def test_unload_clears_data(tmp_path):
    write_ebf(tmp_path / "font.ebf", _sample())
    loader = BitmapFontLoader(LoaderProperties(str(tmp_path)))
    resource = loader.load("font")
    loader.unload(resource)
    assert resource.data is None