import pytest
import uproot
import numpy as np
import awkward as ak


def write_event_file(path, events, with_energy=False):
    """Writes an events tree with a MCParticles collection.

    Args:
        path : str
            Output ROOT file
        events : list
            One list of (px, py, pz, mass) tuples per event
        with_energy : bool
            Also store an energy member (E computed from momentum and mass)
    """
    counts = [len(event) for event in events]
    flat = np.array([particle for event in events for particle in event], dtype=np.float64).reshape(-1, 4)
    n_particles = len(flat)

    def jagged(values, dtype):
        return ak.unflatten(np.asarray(values, dtype=dtype), counts)

    members = {
        "PDG": jagged(np.tile([11, -11, 22], n_particles)[:n_particles], np.int32),
        "generatorStatus": jagged(np.ones(n_particles), np.int32),
        "charge": jagged(np.full(n_particles, -1.0), np.float32),
        "momentum.x": jagged(flat[:, 0], np.float32),
        "momentum.y": jagged(flat[:, 1], np.float32),
        "momentum.z": jagged(flat[:, 2], np.float32),
        "mass": jagged(flat[:, 3], np.float64),
        "vertex.x": jagged(np.arange(n_particles) * 0.1, np.float64),
        "vertex.y": jagged(np.arange(n_particles) * 0.2, np.float64),
        "vertex.z": jagged(np.arange(n_particles) * 0.3, np.float64),
    }
    if with_energy:
        energy = np.sqrt(np.sum(flat[:, :3] ** 2, axis=1) + flat[:, 3] ** 2)
        members["energy"] = jagged(energy, np.float64)
    particles = ak.zip(members, depth_limit=2)
    event_numbers = np.arange(len(events), dtype=np.int32)
    with uproot.recreate(path) as out_file:
        tree = out_file.mktree(
            "events",
            {"MCParticles": ak.type(particles).content, "eventNumber": np.int32},
            field_name=lambda outer, inner: f"{outer}.{inner}",
        )
        tree.extend({"MCParticles": particles, "eventNumber": event_numbers})
    return path


@pytest.fixture
def events():
    return [
        [(1.0, 2.0, 3.0, 0.000511), (-1.0, -2.0, -3.0, 0.000511)],
        [(0.0, 0.0, 45.0, 0.0), (10.0, 0.0, 0.0, 0.13957), (0.0, 5.0, -20.0, 0.493677)],
        [],
        [(3.0, -4.0, 12.0, 91.1876)],
    ]


@pytest.fixture
def event_file(tmp_path, events):
    return write_event_file(str(tmp_path / "sample.root"), events)
