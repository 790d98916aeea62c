from dataclasses import dataclass
from datetime import date
from typing import Optional
import unittest

from core.errors import EnumDecodeError, MappingError
from storage.neo4j.cypher import CypherGenerator
from storage.neo4j.mapper import NodeMapper, RawNodeRecord
from sample_models import Employee, Member, Person, Status, build_registry


class FakeNode:
    def __init__(self, element_id, props):
        self.element_id = element_id
        self._props = props

    def items(self):
        return self._props.items()


class FakeTemporal:
    def __init__(self, native):
        self._native = native

    def to_native(self):
        return self._native


class NodeMapperTest(unittest.TestCase):
    def setUp(self):
        self.registry = build_registry()
        self.mapper = NodeMapper(self.registry)

    def test_maps_all_properties_and_identity(self):
        raw = RawNodeRecord(identity="4:db:1", properties={"name": "Ann", "age": 30})
        person = self.mapper.map(raw, Person)
        self.assertEqual(person, Person(id="4:db:1", name="Ann", age=30))

    def test_identity_never_taken_from_properties(self):
        raw = RawNodeRecord(identity=12, properties={"id": 99, "name": "Ann"})
        self.assertEqual(self.mapper.map(raw, Person).id, 12)

    def test_missing_properties_keep_defaults(self):
        person = self.mapper.map(RawNodeRecord(identity=1, properties={"name": "Ann"}), Person)
        self.assertIsNone(person.age)
        self.assertEqual(person.name, "Ann")

    def test_unmapped_properties_are_ignored(self):
        raw = RawNodeRecord(identity=1, properties={"name": "Ann", "extra": "x"})
        person = self.mapper.map(raw, Person)
        self.assertFalse(hasattr(person, "extra"))

    def test_inherited_fields_are_mapped(self):
        raw = RawNodeRecord(identity=5, properties={"name": "Bo", "age": 41, "role": "dev"})
        self.assertEqual(self.mapper.map(raw, Employee), Employee(id=5, name="Bo", age=41, role="dev"))

    def test_enum_fields_are_decoded(self):
        raw = RawNodeRecord(identity=2, properties={"uuid": "u-1", "name": "Cy", "status": "On hold"})
        member = self.mapper.map(raw, Member)
        self.assertIs(member.status, Status.SUSPENDED)
        self.assertEqual(member.uuid, "u-1")

    def test_enum_failure_names_field_and_value(self):
        raw = RawNodeRecord(identity=2, properties={"status": "bogus"})
        with self.assertRaises(MappingError) as ctx:
            self.mapper.map(raw, Member)
        self.assertEqual(ctx.exception.field_name, "status")
        self.assertEqual(ctx.exception.value, "bogus")
        self.assertIsInstance(ctx.exception.__cause__, EnumDecodeError)

    def test_null_enum_value_fails(self):
        with self.assertRaises(MappingError):
            self.mapper.map(RawNodeRecord(identity=2, properties={"status": None}), Member)

    def test_values_coerced_to_declared_type(self):
        raw = RawNodeRecord(identity=1, properties={"name": 12, "age": "31"})
        person = self.mapper.map(raw, Person)
        self.assertEqual(person.name, "12")
        self.assertEqual(person.age, 31)

    def test_unconvertible_value_fails(self):
        with self.assertRaises(MappingError) as ctx:
            self.mapper.map(RawNodeRecord(identity=1, properties={"age": "old"}), Person)
        self.assertEqual(ctx.exception.field_name, "age")

    def test_driver_temporal_values_are_converted(self):
        @dataclass
        class Event:
            id: Optional[str] = None
            day: Optional[date] = None

        self.registry.register(Event, label="Event", properties={"day": "day"})
        raw = RawNodeRecord(identity="e", properties={"day": FakeTemporal(date(2024, 1, 2))})
        self.assertEqual(self.mapper.map(raw, Event).day, date(2024, 1, 2))

    def test_unbuildable_type_fails(self):
        @dataclass
        class Strict:
            id: str
            name: str

        self.registry.register(Strict, label="Strict", properties={"name": "name"})
        with self.assertRaises(MappingError):
            self.mapper.map(RawNodeRecord(identity="s", properties={}), Strict)

    def test_plain_classes_are_default_constructed(self):
        class Plain:
            id = None
            name: Optional[str] = None

        self.registry.register(Plain, label="Plain", properties={"name": "name"})
        self.assertEqual(self.registry.resolve(Plain).identity_field, "id")
        plain = self.mapper.map(RawNodeRecord(identity=1, properties={"name": "x"}), Plain)
        self.assertIsInstance(plain, Plain)
        self.assertEqual(plain.name, "x")
        self.assertEqual(plain.id, 1)
        self.assertEqual(CypherGenerator(self.mapper.codec).create(plain, self.registry.resolve(Plain)),
                         "CREATE (n:Plain {name: 'x'}) RETURN n")

    def test_plain_class_needing_arguments_fails(self):
        class NeedsArgs:
            name: Optional[str] = None

            def __init__(self, name):
                self.name = name

        self.registry.register(NeedsArgs, label="NeedsArgs", properties={"name": "name"})
        with self.assertRaises(MappingError):
            self.mapper.map(RawNodeRecord(identity=1, properties={"name": "x"}), NeedsArgs)

    def test_record_properties_are_read_only(self):
        raw = RawNodeRecord(identity=1, properties={"name": "Ann"})
        with self.assertRaises(TypeError):
            raw.properties["name"] = "Bob"

    def test_from_node_and_record(self):
        node = FakeNode("4:db:7", {"name": "Di", "age": 22})
        raw = RawNodeRecord.from_node(node)
        self.assertEqual(raw.identity, "4:db:7")
        self.assertEqual(dict(raw.properties), {"name": "Di", "age": 22})
        self.assertEqual(RawNodeRecord.from_record({"n": node}).identity, "4:db:7")

    def test_from_node_falls_back_to_legacy_id(self):
        class LegacyNode:
            id = 42

            def items(self):
                return {"name": "Ed"}.items()

        raw = RawNodeRecord.from_node(LegacyNode())
        self.assertEqual(raw.identity, 42)
        self.assertEqual(self.mapper.map(raw, Person), Person(id=42, name="Ed"))

    def test_map_many(self):
        raws = [RawNodeRecord(identity=i, properties={"name": f"p{i}"}) for i in range(3)]
        people = self.mapper.map_many(raws, Person)
        self.assertEqual([p.name for p in people], ["p0", "p1", "p2"])
        self.assertEqual([p.id for p in people], [0, 1, 2])

    def test_written_properties_map_back(self):
        original = Person(name="Ann", age=30)
        meta = self.registry.resolve(Person)
        written = dict(CypherGenerator(self.mapper.codec).collect_values(original, meta))
        mapped = self.mapper.map(RawNodeRecord(identity=None, properties=written), Person)
        self.assertEqual(mapped, original)


if __name__ == '__main__':
    unittest.main()
