from dataclasses import dataclass
from typing import Optional, Union

from phsim.core.enums import Posture


@dataclass
class StepConditions:
    """
    Environment, activity and clothing for one step block.

    Defaults follow the ISO 7933 worked examples.
    """
    posture: Union[Posture, int] = Posture.STANDING
    t_air: float = 40.0        # Air temperature (C)
    t_rad: float = 40.0        # Mean radiant temperature (C)
    pw_air: float = 2.5        # Partial water vapour pressure (kPa)
    v_air: float = 0.3         # Air velocity (m/s)
    met: float = 150.0         # Metabolic rate (W/m2)
    work: float = 0.0          # Effective mechanical power (W/m2)
    icl: float = 0.5           # Static clothing insulation (clo)
    im_st: float = 0.38        # Static moisture permeability index
    f_aref: float = 0.54       # Fraction of skin covered by reflective clothing
    fr: float = 0.97           # Emissivity of reflective clothing
    walk_dir: Optional[float] = None  # Angle between walking and wind direction (deg)
    v_walk: Optional[float] = None    # Walking speed (m/s)
    step_end: int = 30         # Time at which this step block ends (min)

    @property
    def posture_code(self) -> int:
        if isinstance(self.posture, Posture):
            return self.posture.value
        return int(self.posture)
