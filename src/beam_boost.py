"""Lorentz boost between the center-of-mass frame of the HALHF beams and the lab frame.

The boost is built once from the two beam four-momenta. The returned operator maps a
four-momentum given in the center-of-mass frame of the beams into the (asymmetric) lab frame,
i.e. it is the inverse of the boost that brings the beam system to rest.
Four-momenta are ordered (px, py, pz, E), in GeV.
"""

import functools
import vector
import numpy as np
from dataclasses import dataclass

# momentum is stored in GeV
BEAM_ELECTRON = vector.obj(px=0.0, py=0.0, pz=500.0, E=500.0)
BEAM_POSITRON = vector.obj(px=0.0, py=0.0, pz=-31.3, E=31.3)


def boost_matrix(beta) -> np.ndarray:
    """Builds the 4x4 matrix boosting a four-momentum by the velocity beta.

    A particle at rest ends up moving with velocity +beta.

    Args:
        beta : array-like
            The 3-velocity (in units of c) of the boost

    Returns:
        matrix : np.ndarray
            The boost matrix acting on (px, py, pz, E) column vectors
    """
    beta = np.asarray(beta, dtype=np.float64)
    beta2 = np.dot(beta, beta)
    matrix = np.identity(4)
    if beta2 == 0:
        return matrix
    gamma = 1.0 / np.sqrt(1.0 - beta2)
    matrix[:3, :3] += (gamma - 1.0) * np.outer(beta, beta) / beta2
    matrix[:3, 3] = gamma * beta
    matrix[3, :3] = gamma * beta
    matrix[3, 3] = gamma
    return matrix


@dataclass(frozen=True, eq=False)
class LorentzBoost:
    matrix: np.ndarray

    def __post_init__(self):
        matrix = np.array(self.matrix, dtype=np.float64)
        matrix.setflags(write=False)
        object.__setattr__(self, "matrix", matrix)

    @classmethod
    def from_beta(cls, beta) -> "LorentzBoost":
        return cls(boost_matrix(beta))

    @classmethod
    def from_beams(cls, beam_1, beam_2, to_lab: bool = True) -> "LorentzBoost":
        """Boost from the center-of-mass frame of the two beams to the frame the beams are given in.
        With to_lab=False the opposite boost, bringing the beam system to rest, is returned.

        BoostToCM of the combined system gives the boost bringing the system to rest, not the one
        bringing the rest frame to the system, hence the inversion.
        """
        com = beam_1 + beam_2
        beta_com = com.to_beta3()
        to_cm = boost_matrix([-beta_com.x, -beta_com.y, -beta_com.z])
        if not to_lab:
            return cls(to_cm)
        return cls(np.linalg.inv(to_cm))

    def inverse(self) -> "LorentzBoost":
        return LorentzBoost(np.linalg.inv(self.matrix))

    def __call__(self, p4):
        px, py, pz, E = self.boost_components(p4.px, p4.py, p4.pz, p4.E)
        return vector.obj(px=float(px), py=float(py), pz=float(pz), E=float(E))

    def boost_array(self, p4s) -> np.ndarray:
        """Boosts an array of four-momenta with shape (..., 4)"""
        return np.asarray(p4s, dtype=np.float64) @ self.matrix.T

    def boost_components(self, px, py, pz, E):
        """Boosts four-momenta given as separate component arrays (numpy or awkward).

        Returns:
            (px, py, pz, E) : tuple
                The boosted components, with the same structure as the input
        """
        components = (px, py, pz, E)
        rows = self.matrix.tolist()
        return tuple(sum(coef * component for coef, component in zip(row, components)) for row in rows)


@functools.lru_cache(maxsize=None)
def get_beam_boost() -> LorentzBoost:
    # We only need to compute the boost once
    return LorentzBoost.from_beams(BEAM_ELECTRON, BEAM_POSITRON)
