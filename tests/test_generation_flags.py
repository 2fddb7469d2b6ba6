import unittest

from core.generation_flags import (
    FILTERABLE_FLAGS, FlagSet, GenerationFlag, PackageSource, flag_from_source, flag_description
)


class TestFlagSet(unittest.TestCase):

    def test_set_clear_toggle_return_new_values(self):
        flags = FlagSet.from_flags(GenerationFlag.EMBEDDED)
        with_local = flags.set(GenerationFlag.LOCAL)

        self.assertFalse(flags.contains(GenerationFlag.LOCAL))
        self.assertTrue(with_local.contains(GenerationFlag.LOCAL))
        self.assertFalse(with_local.clear(GenerationFlag.LOCAL).contains(GenerationFlag.LOCAL))
        self.assertEqual(with_local.toggle(GenerationFlag.LOCAL), flags)

    def test_none_is_never_contained(self):
        self.assertFalse(FlagSet(0xFF).contains(GenerationFlag.NONE))

    def test_iteration_and_equality(self):
        flags = FlagSet.from_flags(GenerationFlag.GIT, GenerationFlag.EMBEDDED)
        self.assertEqual(list(flags), [GenerationFlag.EMBEDDED, GenerationFlag.GIT])
        self.assertEqual(flags, FlagSet(GenerationFlag.GIT | GenerationFlag.EMBEDDED))
        self.assertEqual(hash(flags), hash(FlagSet(flags)))
        self.assertFalse(FlagSet())


class TestSourceMapping(unittest.TestCase):

    def test_known_sources_map_by_name(self):
        self.assertEqual(flag_from_source(PackageSource.GIT), GenerationFlag.GIT)
        self.assertEqual(flag_from_source("LocalTarball"), GenerationFlag.LOCAL_TARBALL)
        self.assertEqual(flag_from_source("built_in"), GenerationFlag.BUILT_IN)

    def test_unknown_source_maps_to_none(self):
        self.assertEqual(flag_from_source(PackageSource.UNKNOWN), GenerationFlag.NONE)
        self.assertEqual(flag_from_source("ftp"), GenerationFlag.NONE)
        self.assertEqual(flag_from_source(None), GenerationFlag.NONE)

    def test_unknown_origin_is_not_a_filter_group(self):
        self.assertNotIn(GenerationFlag.UNKNOWN, FILTERABLE_FLAGS)
        self.assertNotIn(GenerationFlag.NONE, FILTERABLE_FLAGS)

    def test_descriptions(self):
        self.assertEqual(flag_description(GenerationFlag.LOCAL_TARBALL), "Local tarball")
        self.assertEqual(flag_description(GenerationFlag.NONE), "")


if __name__ == '__main__':
    unittest.main()
