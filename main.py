"""
FPL xPts Backend — entry point and re-exports.

Code lives in fpl_xpts/ modules:
- config.py:        MODEL_CONFIG + dataclass configs
- constants.py:     Constants, formations, value coercion helpers
- models.py:        Enums, engine dataclasses, Pydantic schemas
- normalization.py: 0-10 normalizers and weight profile selection
- calculators.py:   Factor model, single-fixture and multi-GW xPts
- planner.py:       Squad ranking, formation, transfer targets and analysis
- cache.py:         DataCache singleton
- services.py:      HTTP client, FPL API fetchers, snapshot builder
- endpoints.py:     FastAPI app + API endpoints

Tests import from `main` — star-imports re-export everything.
"""

import logging

from fpl_xpts.config import *         # noqa: F401,F403
from fpl_xpts.constants import *      # noqa: F401,F403
from fpl_xpts.models import *         # noqa: F401,F403
from fpl_xpts.normalization import *  # noqa: F401,F403
from fpl_xpts.calculators import *    # noqa: F401,F403
from fpl_xpts.planner import *        # noqa: F401,F403
from fpl_xpts.cache import *          # noqa: F401,F403
from fpl_xpts.services import *       # noqa: F401,F403
from fpl_xpts.endpoints import app    # noqa: F401

if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8000)
