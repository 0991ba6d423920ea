# -*- coding: utf-8 -*-
""" pytest configuration
"""

import hashlib
from pathlib import Path
import pickle
import random
import re
from typing import Dict, List, Tuple

import line_profiler
import pytest

import nbtree.lexer as lexer
import nbtree.nbt as nbt
import nbtree.snbt as snbt
import nbtree.tags as tags

# Search for files starting in this directory:
DEFAULT_TEST_DATA_PATH = Path(__file__).parent / "data"

# Consider files with these extensions to contain NBT data (compressed or uncompressed):
NBT_FILE_SUFFIXES: Tuple[str] = (".dat",)
SNBT_FILE_SUFFIXES: Tuple[str] = (".snbt",)

# These files will be ignored:
TEST_FILE_BLACKLIST: Tuple[str] = (
    "uid.dat",  # Undocumented. Maybe related to Realms?
                # https://www.minecraftforum.net/forums/minecraft-java-edition/suggestions/79149-world-uid-for-multi-world-servers
)

# Modules profiled by --nbt-profiling
PROFILED_MODULES = (tags, nbt, lexer, snbt)

PROFILING_PUBLIC_DIR = Path("perf/Public/")
PROFILING_PRIVATE_DIR = Path("perf/Private/")


def _find_all_test_data(root: Path, exts: Tuple[str] = None) -> List[Path]:
    """ Search and return testable files based on suffix
    """
    files = []
    for f in sorted(root.iterdir()):
        if f.is_dir():
            files.extend(_find_all_test_data(f, exts=exts))
            continue
        if f.is_file():
            if any([f.name.endswith(suffix) for suffix in exts]):
                if f.name not in TEST_FILE_BLACKLIST:
                    files.append(f)
                    continue
    return files


# Initialized in pytest_configure()
NBT_FILEPATH_FILES: List[Path] = None
NBT_FILEPATH_IDS: List[str] = None
SNBT_FILEPATH_FILES: List[Path] = None
SNBT_FILEPATH_IDS: List[str] = None


def pytest_addoption(parser):
    g = parser.getgroup("nbtree Test Control")
    g.addoption("--shuffle-files", action="store_true", dest="shuffle-files", help="Shuffle lists of files")
    g.addoption("--repeat-files", action="store", type=int, default=1, dest="repeat-files", help="Number of times to test all files")
    g.addoption("--limit-nbt-files", action="store", type=int, default=-1, dest="limit-nbt-files", help="Cap the number of data files used for testing (nbt and snbt)")
    g.addoption("--file-ids", action="store_true", dest="file-ids", help="Create test IDs out of filenames")
    g.addoption("--nbt-profiling", action="store_true", dest="nbt-profiling", help="Profile the nbtree modules during unit test execution")
    g.addoption("--public-profiling", action="store_true", dest="public-profiling", help="Save per-test prof data named as hashed test parameter ids")
    g.addoption("--pertest-profiling", action="store_true", dest="pertest-profiling", help="Save prof data for each test & parameter combination")
    g.addoption("--test-data-dir", action="store", type=str, default=None, dest="test-data-dir", help="Search for NBT/SNBT files in this directory")


PROFILING_NBT = False
PUBLIC_PROFILING = False
PERTEST_PROFILING = False


def pytest_configure(config):
    global \
        NBT_FILEPATH_FILES, NBT_FILEPATH_IDS, \
        SNBT_FILEPATH_FILES, SNBT_FILEPATH_IDS, \
        PERTEST_PROFILING, PROFILING_NBT, PUBLIC_PROFILING

    # --nbt-profiling
    PROFILING_NBT = config.getoption("nbt-profiling")
    if PROFILING_NBT:
        PROFILING_PRIVATE_DIR.mkdir(parents=True, exist_ok=True)

        # Public/ is used for the aggregate stats.
        PROFILING_PUBLIC_DIR.mkdir(parents=True, exist_ok=True)

    # --public-profiling
    PUBLIC_PROFILING = config.getoption("public-profiling")

    # --pertest-profiling
    PERTEST_PROFILING = config.getoption("pertest-profiling")

    # --test-data-dir
    test_data_root = DEFAULT_TEST_DATA_PATH
    if config.getoption("test-data-dir") is not None:
        test_data_root = Path(config.getoption("test-data-dir"))

    # Find files to use as test parameters
    NBT_FILEPATH_FILES = _find_all_test_data(root=test_data_root, exts=NBT_FILE_SUFFIXES)
    SNBT_FILEPATH_FILES = _find_all_test_data(root=test_data_root, exts=SNBT_FILE_SUFFIXES)

    # --repeat-files
    if config.getoption("repeat-files") > 1:
        NBT_FILEPATH_FILES = NBT_FILEPATH_FILES * config.getoption("repeat-files")
        SNBT_FILEPATH_FILES = SNBT_FILEPATH_FILES * config.getoption("repeat-files")

    # --shuffle-files
    if config.getoption("shuffle-files"):
        # Ruin the natural ordering and locality from directory traversal.
        # Similar files will trigger the same code paths which get optimized
        # easily by modern* CPUs.
        #
        # * Modern meaning most x86_64; definitely not all RISC variants...
        random.shuffle(NBT_FILEPATH_FILES)
        random.shuffle(SNBT_FILEPATH_FILES)

    # --limit-nbt-files
    max_files = config.getoption("limit-nbt-files")
    if max_files >= 0:
        NBT_FILEPATH_FILES = NBT_FILEPATH_FILES[:max_files]
        SNBT_FILEPATH_FILES = SNBT_FILEPATH_FILES[:max_files]

    # --file-ids
    if config.getoption("file-ids"):
        NBT_FILEPATH_IDS = [str(path) for path in NBT_FILEPATH_FILES]
        SNBT_FILEPATH_IDS = [str(path) for path in SNBT_FILEPATH_FILES]


AGGREGATE_STATS = None


def merge_line_stats(base, incr) -> None:
    """ base += incr, for two line_profiler LineStats

    LineStats.timings: Dict[Tuple[str, int, str], List[Tuple[int, int, int]]]
    """
    # key -> (filename, first line number, function name)
    # value -> [(line number, hit count, total time), ...]
    for key, new_values in incr.timings.items():

        if key not in base.timings:
            base.timings[key] = new_values
            continue

        line_to_hits: Dict[int, int] = {}
        line_to_time: Dict[int, int] = {}

        for lineno, hits, tottime in base.timings[key]:
            line_to_hits[lineno] = hits
            line_to_time[lineno] = tottime

        for lineno, hits, tottime in new_values:
            line_to_hits[lineno] = line_to_hits.get(lineno, 0) + hits
            line_to_time[lineno] = line_to_time.get(lineno, 0) + tottime

        base.timings[key] = [
            (lineno, line_to_hits[lineno], line_to_time[lineno]) for lineno in sorted(line_to_hits)
        ]


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_protocol(item, nextitem):
    if not PROFILING_NBT:
        yield
        return

    lp = line_profiler.LineProfiler()
    for module in PROFILED_MODULES:
        lp.add_module(module)
    lp.enable_by_count()
    yield
    lp.disable_by_count()

    # All private profiling results are compiled and saved into one statistic.
    # This singular statistic is saved in the Public/ directory.
    global AGGREGATE_STATS
    if AGGREGATE_STATS is None:
        AGGREGATE_STATS = lp.get_stats()
    else:
        merge_line_stats(AGGREGATE_STATS, lp.get_stats())
    with open(PROFILING_PUBLIC_DIR / "aggregate.prof", 'wb') as f:
        pickle.dump(AGGREGATE_STATS, f, pickle.HIGHEST_PROTOCOL)
    with open(PROFILING_PUBLIC_DIR / "aggregate.stats", 'w') as f:
        line_profiler.show_text(AGGREGATE_STATS.timings, AGGREGATE_STATS.unit, stream=f)

    # Profiling results will always have individual entries in the Private/
    # directory. Item name hashing and saving to the public directory can be
    # enabled with --public-profiling.
    if not PERTEST_PROFILING:
        return
    profile_name = re.sub(r"[^-a-zA-Z0-9_\.]", "_", item.name)
    lp.dump_stats(PROFILING_PRIVATE_DIR / f"{profile_name}.prof")
    with open(PROFILING_PRIVATE_DIR / f"{profile_name}.stats", 'w') as f:
        lp.print_stats(stream=f)
    if PUBLIC_PROFILING:
        profile_name_hashed = hashlib.blake2b(
            profile_name.encode('utf-8'),
            digest_size=3
        ).hexdigest()
        lp.dump_stats(PROFILING_PUBLIC_DIR / f"{profile_name_hashed}.prof")
        with open(PROFILING_PUBLIC_DIR / f"{profile_name_hashed}.stats", 'w') as f:
            lp.print_stats(stream=f)


def pytest_generate_tests(metafunc):
    if "nbt_filepath" in metafunc.fixturenames:
        metafunc.parametrize("nbt_filepath", NBT_FILEPATH_FILES, ids=NBT_FILEPATH_IDS)
    if "snbt_filepath" in metafunc.fixturenames:
        metafunc.parametrize("snbt_filepath", SNBT_FILEPATH_FILES, ids=SNBT_FILEPATH_IDS)


@pytest.fixture
def data_dir() -> Path:
    return DEFAULT_TEST_DATA_PATH
