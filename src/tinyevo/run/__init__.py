"""
tinyevo Run Package

This package configures and runs the evolutionary loop.

Exported Classes:
    Config:            Configuration parameters (INI file or defaults)
    Simulation:        The evolutionary loop
    TerminationReason: Why a simulation stopped
"""

from tinyevo.run.config     import Config
from tinyevo.run.simulation import Simulation, TerminationReason

__all__ = ['Config',
           'Simulation',
           'TerminationReason']
