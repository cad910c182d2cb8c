"""Boosts all particles of EDM4hep-style event files to match the beam conditions of HALHF.
The output file matches the input file name: *-boosted.root
To process the samples configured in config/boost.yaml:
           python3 src/edm4hep_boost.py [hydra overrides]
"""

import os
import time
import glob
import hydra
import vector
import awkward as ak
from omegaconf import DictConfig
from beam_boost import get_beam_boost
from edm4hep_io import EventReader, EventWriter, EventRecord, derive_output_path


def calculate_p4(members: dict):
    """Four-momenta of a particle collection. Collections without an energy member (MCParticles) store the mass."""
    p4 = {"px": members["momentum.x"], "py": members["momentum.y"], "pz": members["momentum.z"]}
    if "energy" in members:
        p4["E"] = members["energy"]
    else:
        p4["mass"] = members["mass"]
    return vector.awk(ak.zip(p4))


def _same_dtype(values: ak.Array, reference: ak.Array) -> ak.Array:
    dtype = ak.to_numpy(ak.flatten(reference, axis=None)).dtype
    return ak.values_astype(values, dtype)


def boost_record(record: EventRecord, boost=None, collection: str = "MCParticles", update_energy: bool = False) -> None:
    """Replaces the momenta of all particles of the collection by the boosted momenta.

    Args:
        record : EventRecord
            The event, modified in place
        boost : LorentzBoost
            Boost to apply [default: the cached HALHF beam boost]
        collection : str
            Name of the particle collection
        update_energy : bool
            Also overwrite the energy member, if the collection has one. By default the boosted
            energy is discarded. [default: False]
    """
    if boost is None:
        boost = get_beam_boost()
    members = record.members(collection)
    p4 = calculate_p4(members)
    px, py, pz, energy = boost.boost_components(p4.px, p4.py, p4.pz, p4.E)
    boosted = {
        "momentum.x": _same_dtype(px, members["momentum.x"]),
        "momentum.y": _same_dtype(py, members["momentum.y"]),
        "momentum.z": _same_dtype(pz, members["momentum.z"]),
    }
    if update_energy and "energy" in members:
        boosted["energy"] = _same_dtype(energy, members["energy"])
    record.update(collection, boosted)


def process_single_file(
    input_path: str, tree_path: str = "events", collection: str = "MCParticles", update_energy: bool = False
) -> str:
    start_time = time.time()
    boost = get_beam_boost()
    with EventReader(input_path, tree_path) as reader:
        print(f"N events: {reader.num_entries}")
        if collection not in reader.collection_names:
            print(f"No {collection} collection in {input_path}, copying events unchanged")
        output_path = derive_output_path(input_path)
        print(f"Will write: {output_path}")
        with EventWriter(output_path, reader.empty_record(), tree_path) as writer:
            # Event loop
            for record in reader:
                if collection in record.collections:
                    boost_record(record, boost, collection, update_energy)
                writer.write(record)
    end_time = time.time()
    print(f"Finished processing {writer.n_written} events in {end_time-start_time} s.")
    return output_path


def process_input_files(input_paths: list, continue_on_error: bool = False, **kwargs) -> list:
    """Boosts the files one after the other. By default the first failure aborts the remaining files.

    Returns:
        output_paths : list
            The files that were written
    """
    output_paths = []
    for path in input_paths:
        try:
            output_paths.append(process_single_file(path, **kwargs))
        except OSError as err:
            if not continue_on_error:
                raise
            print(f"Broken input file at {path}: {err}")
    return output_paths


@hydra.main(config_path="../config", config_name="boost", version_base=None)
def process_all_input_files(cfg: DictConfig) -> None:
    print("Working directory : {}".format(os.getcwd()))
    for sample in cfg.samples_to_process:
        print("Processing sample %s" % sample)
        input_dir = os.path.expandvars(cfg.samples[sample].input_dir)
        if not os.path.exists(input_dir):
            raise OSError("Input directory does not exist: %s" % input_dir)
        if cfg.test_run:
            n_files = 10
        else:
            n_files = None
        input_wcp = os.path.join(input_dir, "*.root")
        input_paths = [path for path in sorted(glob.glob(input_wcp)) if not path.endswith("-boosted.root")][:n_files]
        print("Found %i input files." % len(input_paths))
        process_input_files(
            input_paths,
            continue_on_error=cfg.continue_on_error,
            tree_path=cfg.tree_path,
            collection=cfg.collection,
            update_energy=cfg.update_energy,
        )


if __name__ == "__main__":
    process_all_input_files()
