"""Entry-by-entry access to the events tree of EDM4hep-style ROOT files.

Leaf branches named <collection>.<member> (e.g. MCParticles.momentum.x) are grouped into
collections, the remaining leaves are kept as event level branches.

The writer stores each collection as an uproot jagged branch group (<collection>.<member> leaves
sharing an n<collection> counter) and copies only the events tree. podio metadata trees are not
written, so the output is read back with uproot (or EventReader), not with podio/EDM4hep readers.
"""

import os
import errno
import uproot
import numpy as np
import awkward as ak


class EventFileError(OSError):
    """The input is not a ROOT file or does not contain the requested tree"""


def derive_output_path(input_path: str, suffix: str = "-boosted") -> str:
    """Inserts the suffix in front of the file extension: dir/name.root -> dir/name-boosted.root"""
    stem, extension = os.path.splitext(input_path)
    return f"{stem}{suffix}{extension}"


def group_leaves(paths: list) -> tuple:
    """Splits leaf branch paths into collection members and event level branches.

    Args:
        paths : list
            Full paths of the leaf branches, e.g. "MCParticles/MCParticles.momentum.x"

    Returns:
        collections : dict
            collection name -> member name -> branch path
        branches : dict
            event level branch name -> branch path
    """
    collections = {}
    branches = {}
    for path in paths:
        name = path.split("/")[-1]
        if "." in name:
            collection, member = name.split(".", 1)
            collections.setdefault(collection, {})[member] = path
        else:
            branches[name] = path
    # counters of jagged branches are recreated by the writer
    for counted in list(collections) + list(branches):
        branches.pop(f"n{counted}", None)
    return collections, branches


class EventRecord:
    def __init__(self, index: int, collections: dict, branches: dict):
        self.index = index
        self.collections = collections
        self.branches = branches

    def members(self, collection: str) -> dict:
        return self.collections[collection]

    def update(self, collection: str, members: dict) -> None:
        """Overwrites existing members of a collection"""
        unknown = set(members) - set(self.collections[collection])
        if unknown:
            raise KeyError(f"Collection {collection} has no members {sorted(unknown)}")
        self.collections[collection].update(members)

    def to_arrays(self) -> dict:
        arrays = {name: ak.zip(members, depth_limit=2) for name, members in self.collections.items()}
        arrays.update(self.branches)
        return arrays


class EventReader:
    def __init__(self, path: str, tree_path: str = "events"):
        self.path = path
        self.tree_path = tree_path
        self._file = None
        self._tree = None
        self._collections = {}
        self._branches = {}

    def __enter__(self):
        try:
            self._file = uproot.open(self.path)
        except (ValueError, uproot.deserialization.DeserializationError) as err:
            raise EventFileError(f"Not a readable ROOT file: {self.path}") from err
        try:
            self._tree = self._file[self.tree_path]
            leaves = self._tree.keys(
                filter_branch=lambda branch: len(branch.branches) == 0, recursive=True, full_paths=True
            )
        except KeyError as err:
            self._file.close()
            raise EventFileError(f"No tree '{self.tree_path}' in {self.path}") from err
        except Exception:
            self._file.close()
            raise
        self._collections, self._branches = group_leaves(leaves)
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self._file.close()

    @property
    def num_entries(self) -> int:
        return self._tree.num_entries

    @property
    def collection_names(self) -> list:
        return list(self._collections)

    def _paths(self) -> list:
        paths = [path for members in self._collections.values() for path in members.values()]
        return paths + list(self._branches.values())

    def _to_record(self, chunk: ak.Array, index: int) -> EventRecord:
        collections = {
            collection: {member: chunk[path] for member, path in members.items()}
            for collection, members in self._collections.items()
        }
        branches = {name: chunk[path] for name, path in self._branches.items()}
        return EventRecord(index, collections, branches)

    def empty_record(self) -> EventRecord:
        """Zero-length record carrying the types of all branches"""
        chunk = self._tree.arrays(self._paths(), entry_start=0, entry_stop=0, library="ak")
        return self._to_record(chunk, -1)

    def __iter__(self):
        # one entry at a time, the record is released once written out
        chunks = self._tree.iterate(self._paths(), step_size=1, library="ak")
        for index, chunk in enumerate(chunks):
            yield self._to_record(chunk, index)


def _branch_type(array: ak.Array):
    content = ak.type(array).content
    if isinstance(content, ak.types.NumpyType):
        return np.dtype(content.primitive)
    return content


class EventWriter:
    def __init__(self, path: str, schema: EventRecord, tree_path: str = "events"):
        self.path = path
        self.schema = schema
        self.tree_path = tree_path
        self.n_written = 0
        self._file = None
        self._tree = None

    def __enter__(self):
        if os.path.exists(self.path):
            raise FileExistsError(errno.EEXIST, "Output file exists, refusing to overwrite", self.path)
        self._file = uproot.create(self.path)
        try:
            branch_types = {name: _branch_type(array) for name, array in self.schema.to_arrays().items()}
            self._tree = self._file.mktree(
                self.tree_path, branch_types, field_name=lambda outer, inner: f"{outer}.{inner}"
            )
        except Exception:
            self._file.close()
            raise
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self._file.close()

    def write(self, record: EventRecord) -> None:
        self._tree.extend(record.to_arrays())
        self.n_written += 1
