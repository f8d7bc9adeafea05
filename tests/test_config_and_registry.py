"""
Tests for solver configuration and the solver registry.
"""

import os
import shutil
import tempfile
import unittest

from branchsat.solvers import (
    BruteForceSolver,
    MonienSpeckenmeyerSolver,
    SolverBase,
    SolverConfig,
    SolverRegistry,
    get_config,
    load_config,
    reset_config,
)
from branchsat.utils.exceptions import ConfigurationError


class TestSolverConfig(unittest.TestCase):
    """Test the OmegaConf-backed configuration."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)
        reset_config()

    def test_defaults(self):
        config = SolverConfig()
        self.assertEqual(config.get("solver.name"), "monien_speckenmeyer")
        self.assertIsNone(config.get("solver.timeout"))
        self.assertEqual(config.get("solver.monien_speckenmeyer.parallel_workers"), 1)
        self.assertTrue(config["solver.monien_speckenmeyer.record_witness"])
        self.assertEqual(config.get("solver.brute_force.max_vars"), 24)

    def test_missing_key_returns_default(self):
        config = SolverConfig()
        self.assertEqual(config.get("solver.nothing.here", 5), 5)
        self.assertNotIn("solver.nothing", config)
        self.assertIn("solver.name", config)

    def test_set_and_update(self):
        config = SolverConfig()
        config.set("solver.timeout", 2.5)
        config["solver.brute_force.max_vars"] = 10
        config.update({"logging": {"level": "DEBUG"}})

        self.assertEqual(config.get("solver.timeout"), 2.5)
        self.assertEqual(config.get("solver.brute_force.max_vars"), 10)
        self.assertEqual(config.to_dict()["logging"]["level"], "DEBUG")
        self.assertEqual(config.get("solver.name"), "monien_speckenmeyer")

    def test_save_and_load(self):
        path = os.path.join(self.test_dir, "nested", "solver.yaml")
        config = SolverConfig()
        config.set("solver.monien_speckenmeyer.parallel_workers", 3)
        config.save(path)

        loaded = SolverConfig(path)
        self.assertEqual(loaded.get("solver.monien_speckenmeyer.parallel_workers"), 3)

    def test_partial_file_merges_with_defaults(self):
        path = os.path.join(self.test_dir, "partial.yaml")
        with open(path, "w") as f:
            f.write("solver:\n  name: brute_force\n")

        loaded = SolverConfig(path)
        self.assertEqual(loaded.get("solver.name"), "brute_force")
        self.assertEqual(loaded.get("solver.brute_force.max_vars"), 24)

    def test_missing_file(self):
        with self.assertRaises(ConfigurationError):
            SolverConfig(os.path.join(self.test_dir, "absent.yaml"))

    def test_global_config_drives_solvers(self):
        path = os.path.join(self.test_dir, "global.yaml")
        with open(path, "w") as f:
            f.write(
                "solver:\n"
                "  timeout: 4.0\n"
                "  monien_speckenmeyer:\n"
                "    parallel_workers: 2\n"
                "    record_witness: false\n"
            )

        self.assertIs(load_config(path), get_config())
        solver = MonienSpeckenmeyerSolver()
        self.assertEqual(solver.parallel_workers, 2)
        self.assertFalse(solver.record_witness)
        self.assertEqual(solver.default_timeout, 4.0)

        reset_config()
        self.assertIsNone(get_config().get("solver.timeout"))

    def test_load_config_without_path_keeps_current(self):
        current = get_config()
        self.assertIs(load_config(None), current)


class TestSolverRegistry(unittest.TestCase):
    """Test solver registration and lookup."""

    def tearDown(self):
        SolverRegistry._registry.pop("dummy", None)

    def test_builtin_solvers_registered(self):
        names = SolverRegistry.list_solvers()
        self.assertIn("monien_speckenmeyer", names)
        self.assertIn("brute_force", names)
        self.assertEqual(names, sorted(names))
        self.assertIs(SolverRegistry.get("monien_speckenmeyer"), MonienSpeckenmeyerSolver)
        self.assertIs(SolverRegistry.get("brute_force"), BruteForceSolver)
        self.assertEqual(MonienSpeckenmeyerSolver.solver_name, "monien_speckenmeyer")

    def test_unknown_solver(self):
        with self.assertRaises(ConfigurationError) as ctx:
            SolverRegistry.get("minisat")
        self.assertIn("brute_force", str(ctx.exception))
        with self.assertRaises(ConfigurationError):
            SolverRegistry.create("minisat")

    def test_non_solver_rejected(self):
        with self.assertRaises(TypeError):
            SolverRegistry.register("dummy", dict)

    def test_create_passes_options(self):
        solver = SolverRegistry.create("monien_speckenmeyer", num_vars=3, parallel_workers=2)
        self.assertIsInstance(solver, SolverBase)
        self.assertEqual(solver.num_vars, 3)
        self.assertEqual(solver.parallel_workers, 2)

    def test_reregistering_same_class_is_silent(self):
        before = dict(SolverRegistry._registry)
        with self.assertNoLogs("branchsat.solvers.registry", level="WARNING"):
            SolverRegistry.register("brute_force", BruteForceSolver)
        self.assertEqual(SolverRegistry._registry, before)

    def test_register_decorator(self):
        @SolverRegistry.register_as("dummy")
        class DummySolver(BruteForceSolver):
            pass

        self.assertIs(SolverRegistry.get("dummy"), DummySolver)
        self.assertEqual(DummySolver.solver_name, "dummy")
        self.assertEqual(BruteForceSolver.solver_name, "brute_force")
        self.assertEqual(DummySolver().get_statistics()["solver_name"], "dummy")

    def test_override_warns(self):
        SolverRegistry.register("dummy", BruteForceSolver)
        with self.assertLogs("branchsat.solvers.registry", level="WARNING"):
            SolverRegistry.register("dummy", MonienSpeckenmeyerSolver)


if __name__ == "__main__":
    unittest.main()
