"""Runtime systems for exploding rows of cubes."""
from .fragments import CubeDestructionSim, CubeSize, CubeVisual, Fragment, FragmentKind, FragmentMaterial
from .presets import LOW, ULTRA, DestructionPreset, get_preset
from .physics import FragmentPhysicsConfig, update_cube_destruction_sim, update_fragment_physics
from .board import Board, BoardToWorldMapper, CellContent
from .schedule import DestructionSimulationState, RowDestructionSim, start_line_destruction_from_board
from .lifecycle import launch_scheduled_explosions, step_destruction_simulations, get_hidden_cube_ids
from .instances import build_fragment_instance_updates, to_instance_matrices
