"""Tests for the reference catalog: record conversion and inheritance resolution."""

import pytest

from conftest import game, rom
from romaudit.catalog import Catalog, DumpStatus, RomRecord, build_catalog
from romaudit.diagnostics import DiagnosticKind
from romaudit.exceptions import CatalogError, MalformedDigestError


class TestRecordConversion:
    """Raw records -> Entry objects."""

    def test_parses_crc_and_sha1(self):
        catalog = build_catalog([game("pacman", rom("pacman.6e", b"\x01\x02\x03"))])
        entry = catalog["pacman"].entries[0]

        assert entry.size == 3
        assert entry.crc32 == 0x55BC801D
        assert entry.sha1 == bytes.fromhex("7037807198c22a7d2b0807371d763779a84fdfcf")
        assert entry.dump_status is DumpStatus.GOOD

    def test_crc_accepts_uppercase_and_short_values(self):
        record = RomRecord(name="a.bin", size="16", crc="0000ABCD")
        short = RomRecord(name="b.bin", size="16", crc="abcd")
        catalog = build_catalog([game("g", record, short)])

        assert catalog["g"].entries[0].crc32 == 0xABCD
        assert catalog["g"].entries[1].crc32 == 0xABCD

    def test_nodump_entries_are_dropped(self):
        nodump = RomRecord(name="missing.bin", size="1024", status="nodump")
        catalog = build_catalog([game("g", rom("ok.bin", b"ok"), nodump)])

        assert [e.name for e in catalog["g"].entries] == ["ok.bin"]

    def test_baddump_entries_are_kept(self):
        catalog = build_catalog([game("g", rom("bad.bin", b"xx", status="baddump"))])
        assert catalog["g"].entries[0].dump_status is DumpStatus.BADDUMP

    def test_missing_sha1_is_allowed(self):
        catalog = build_catalog([game("g", rom("a.bin", b"abc", with_sha1=False))])
        assert catalog["g"].entries[0].sha1 is None

    def test_entry_order_is_preserved(self):
        catalog = build_catalog([game("g", rom("c", b"c"), rom("a", b"a"), rom("b", b"b"))])
        assert [e.name for e in catalog["g"].entries] == ["c", "a", "b"]

    @pytest.mark.parametrize(
        "record,field_name",
        [
            (RomRecord(name="r.bin", size="4", crc="xyz"), "crc"),
            (RomRecord(name="r.bin", size="4", crc=None), "crc"),
            (RomRecord(name="r.bin", size="4", crc="123456789"), "crc"),
            (RomRecord(name="r.bin", size="4", crc="1234", sha1="abcd"), "sha1"),
            (RomRecord(name="r.bin", size="4", crc="1234", sha1="zz" * 20), "sha1"),
            (RomRecord(name="r.bin", size="four", crc="1234"), "size"),
            (RomRecord(name="r.bin", size="-1", crc="1234"), "size"),
        ],
    )
    def test_malformed_fields_are_fatal(self, record, field_name):
        records = [game("first", rom("ok.bin", b"ok")), game("broken", record)]

        with pytest.raises(MalformedDigestError) as excinfo:
            build_catalog(records)

        err = excinfo.value
        assert isinstance(err, CatalogError)
        assert err.set_name == "broken"
        assert err.entry_name == "r.bin"
        assert err.details["field_name"] == field_name
        assert "broken" in str(err) and "r.bin" in str(err)

    def test_nodump_entry_with_bad_crc_does_not_fail(self):
        nodump = RomRecord(name="x.bin", size="4", crc="", status="nodump")
        catalog = build_catalog([game("g", nodump)])
        assert catalog["g"].entries == ()


class TestLookup:
    def test_lookup_and_mapping_protocol(self):
        catalog = build_catalog([game("a"), game("b")])

        assert catalog.lookup("a").name == "a"
        assert catalog.lookup("zzz") is None
        assert catalog.lookup(None) is None
        assert "b" in catalog
        assert len(catalog) == 2
        assert [g.name for g in catalog] == ["a", "b"]
        with pytest.raises(KeyError):
            catalog["zzz"]

    def test_build_classmethod(self):
        catalog = Catalog.build([game("a")])
        assert catalog.names() == ["a"]

    def test_duplicate_set_keeps_first(self):
        catalog = build_catalog([game("a", rom("1", b"1")), game("a", rom("2", b"2"))])

        assert [e.name for e in catalog["a"].entries] == ["1"]
        kinds = [d.kind for d in catalog.integrity_issues]
        assert kinds == [DiagnosticKind.DUPLICATE_SET]

    def test_duplicate_entry_keeps_first(self):
        catalog = build_catalog([game("a", rom("1", b"first"), rom("1", b"second"))])

        assert len(catalog["a"].entries) == 1
        assert catalog["a"].entries[0].size == len(b"first")
        issue = catalog.integrity_issues[0]
        assert issue.kind is DiagnosticKind.DUPLICATE_ENTRY
        assert issue.entry_name == "1"


class TestInheritance:
    """Parent/bios edges and effective bios flattening."""

    def test_romof_equal_to_cloneof_is_not_a_bios(self):
        catalog = build_catalog([game("parent"), game("clone", cloneof="parent", romof="parent")])
        clone = catalog["clone"]

        assert clone.parent_name == "parent"
        assert clone.bios_name is None
        assert clone.effective_bios_name is None

    def test_direct_bios(self):
        catalog = build_catalog([game("neogeo", is_bios=True), game("mslug", romof="neogeo")])

        assert catalog["mslug"].bios_name == "neogeo"
        assert catalog["mslug"].effective_bios_name == "neogeo"
        assert catalog["neogeo"].is_bios

    def test_bios_inherited_through_long_clone_chain(self):
        records = [
            game("a", cloneof="b", romof="b"),
            game("b", cloneof="c", romof="c"),
            game("c", romof="d"),
            game("d", is_bios=True),
        ]
        catalog = build_catalog(records)

        assert catalog["a"].effective_bios_name == "d"
        assert catalog["b"].effective_bios_name == "d"
        assert catalog["c"].effective_bios_name == "d"
        assert catalog["d"].effective_bios_name is None
        assert catalog.integrity_issues == ()

    def test_own_bios_wins_over_inherited(self):
        records = [
            game("bios1", is_bios=True),
            game("bios2", is_bios=True),
            game("parent", romof="bios1"),
            game("clone", cloneof="parent", romof="bios2"),
        ]
        catalog = build_catalog(records)

        assert catalog["clone"].effective_bios_name == "bios2"

    def test_dangling_parent_and_bios_are_reported(self):
        records = [
            game("orphan", cloneof="nowhere", romof="nowhere"),
            game("lost", romof="nobios"),
        ]
        catalog = build_catalog(records)

        kinds = {(d.set_name, d.kind) for d in catalog.integrity_issues}
        assert ("orphan", DiagnosticKind.DANGLING_PARENT) in kinds
        assert ("lost", DiagnosticKind.DANGLING_BIOS) in kinds
        assert catalog["orphan"].effective_bios_name is None
        assert catalog["lost"].effective_bios_name is None

    def test_clone_cycle_terminates_and_is_reported(self):
        records = [
            game("a", cloneof="b"),
            game("b", cloneof="a"),
            game("good", romof="bios"),
            game("bios", is_bios=True),
        ]
        catalog = build_catalog(records)

        cycles = [d for d in catalog.integrity_issues if d.kind is DiagnosticKind.INHERITANCE_CYCLE]
        assert len(cycles) == 1
        assert cycles[0].detail == "a -> b -> a"
        assert catalog["a"].effective_bios_name is None
        assert catalog["b"].effective_bios_name is None
        assert catalog["good"].effective_bios_name == "bios"

    def test_self_reference_is_a_cycle(self):
        catalog = build_catalog([game("loop", cloneof="loop")])

        assert [d.kind for d in catalog.integrity_issues] == [DiagnosticKind.INHERITANCE_CYCLE]

    def test_clone_of_cyclic_set_stays_unresolved(self):
        records = [
            game("x", cloneof="y", romof="bios"),
            game("y", cloneof="x"),
            game("z", cloneof="y"),
            game("bios", is_bios=True),
        ]
        catalog = build_catalog(records)

        # x carries its own bios even though it sits on the cycle
        assert catalog["x"].effective_bios_name == "bios"
        assert catalog["y"].effective_bios_name is None
        assert catalog["z"].effective_bios_name is None

    def test_bios_cycle_is_reported(self):
        catalog = build_catalog([game("b1", romof="b2"), game("b2", romof="b1")])

        kinds = [d.kind for d in catalog.integrity_issues]
        assert kinds == [DiagnosticKind.INHERITANCE_CYCLE]
        assert catalog["b1"].effective_bios_name is None
        assert catalog["b2"].effective_bios_name is None

    def test_self_bios_is_a_cycle(self):
        catalog = build_catalog([game("x", romof="x")])

        assert [d.kind for d in catalog.integrity_issues] == [DiagnosticKind.INHERITANCE_CYCLE]
        assert catalog["x"].bios_name == "x"
        assert catalog["x"].effective_bios_name is None

    def test_merge_name_is_kept(self):
        catalog = build_catalog([game("clone", rom("c.bin", b"c", merge="p.bin"), cloneof="p"), game("p")])
        entry = catalog["clone"].entries[0]

        assert entry.merge_name == "p.bin"
        assert entry.inherited_name == "p.bin"
