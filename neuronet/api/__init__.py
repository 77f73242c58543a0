from neuronet.api.core import SimulationCore, create_simulation_core
from neuronet.api.server import SimulationHTTPServer, dispatch, parse_json_body, run_api_server

__all__ = [
    "SimulationCore",
    "create_simulation_core",
    "SimulationHTTPServer",
    "dispatch",
    "parse_json_body",
    "run_api_server",
]
