import pytest

from callstack.addr_base import (
    MappingEntry,
    get_own_proc_addr_base,
    hex_str_to_int,
    parse_proc_maps_line,
)

SAMPLE = (
    "7fb60d1ea000-7fb60d20c000 r--p 00000000 103:02 120327460"
    "                 /usr/lib/libc.so.6"
)


def test_hex_str_to_int_parses_whole_string():
    assert hex_str_to_int("7fb60d1ea000") == 0x7FB60D1EA000
    assert hex_str_to_int("00000000") == 0


def test_hex_str_to_int_accepts_leading_whitespace():
    assert hex_str_to_int("  ff") == hex_str_to_int("ff")


@pytest.mark.parametrize("text", ["", "zz", "12 ", "1-2", "0xg"])
def test_hex_str_to_int_rejects(text):
    with pytest.raises(ValueError, match="can't convert"):
        hex_str_to_int(text)


def test_parse_sample_line():
    entry = parse_proc_maps_line(SAMPLE)
    assert entry == MappingEntry(0x7FB60D1EA000, 0x7FB60D20C000, 0)


@pytest.mark.parametrize(
    "line",
    ["", "7fb60d1ea000-7fb60d20c000", "7fb60d1ea000-7fb60d20c000 r--p",
     "7fb60d1ea000 r--p 00000000", "7fb60d1ea000- r--p 00000000",
     "zz-7fb60d20c000 r--p 00000000", "1000-2000 r--p qq 103:02"],
)
def test_parse_malformed_lines_give_empty_entry(line):
    assert parse_proc_maps_line(line) == MappingEntry()


def test_contains_addr_is_half_open():
    entry = MappingEntry(start=0x1000, end=0x2000)
    assert entry.contains_addr(0x1000)
    assert entry.contains_addr(0x1FFF)
    assert not entry.contains_addr(0x2000)
    assert not entry.contains_addr(0xFFF)


def test_empty_entry_contains_nothing():
    assert not MappingEntry().contains_addr(0)


def test_get_base_from_maps_file(tmp_path):
    maps = tmp_path / "maps"
    maps.write_text(
        "garbage\n"
        "1000-2000 r-xp 00000000 08:01 1 /bin/a\n"
        "3000-4000 r-xp 00000000 08:01 2 /bin/b\n"
    )
    assert get_own_proc_addr_base(0x1500, str(maps)) == 0x1000
    assert get_own_proc_addr_base(0x3000, str(maps)) == 0x3000


def test_get_base_subtracts_offset(tmp_path):
    maps = tmp_path / "maps"
    maps.write_text("1000-2000 r-xp 00000800 08:01 1 /bin/a\n")
    entry = parse_proc_maps_line("1000-2000 r-xp 00000800 08:01 1 /bin/a")
    base = get_own_proc_addr_base(0x1800, str(maps))
    assert base + entry.offset_from_base == entry.start


def test_get_base_unmapped_address(tmp_path):
    maps = tmp_path / "maps"
    maps.write_text("1000-2000 r-xp 00000000 08:01 1 /bin/a\n")
    assert get_own_proc_addr_base(0x2000, str(maps)) == 0


def test_get_base_missing_file(tmp_path):
    assert get_own_proc_addr_base(0x1000, str(tmp_path / "absent")) == 0