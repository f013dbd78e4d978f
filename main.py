#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Wizard Flow - headless definition checker

Builds the Control Model of a wizard Definition (JSON) and reports every
violation. With a data file, also walks the flow with next() until the
wizard completes or a transition is blocked.

Usage:
    python main.py definition.json [data.json]
"""

import json
import sys
from pathlib import Path

from app.config import Config
from services.exceptions import DefinitionError, WizardError
from services.wizard import ControlModelBuilder, NavigationEngine, WizardDataModel
from utils.logger import setup_logger


def _load_json(path: str):
    with Path(path).open(encoding="utf-8") as handle:
        return json.load(handle)


def walk(model, data: dict, max_steps: int = 10000) -> int:
    """Follow next() from the first route; return the exit status."""
    engine = NavigationEngine(model, data_model=WizardDataModel(data))
    engine.start()
    steps = 0
    while not engine.is_complete:
        if steps >= max_steps:
            print(f"Gave up after {max_steps} steps: the route graph loops")
            return 1
        steps += 1
        try:
            if not engine.next():
                print(f"Stopped at {engine.active_route.id}: transition vetoed")
                return 1
        except WizardError as e:
            print(f"Stopped at {engine.active_route.id}: {e}")
            return 1

    print("Route path: " + " → ".join(engine.state.route_path))
    print("Wizard complete")
    return 0


def main():
    """Main application entry point."""
    if len(sys.argv) not in (2, 3):
        print(__doc__.strip().splitlines()[-1].strip())
        return 2

    logger = setup_logger()
    logger.info(f"{Config.APP_NAME} {Config.VERSION}: checking {sys.argv[1]}")

    try:
        model = ControlModelBuilder().build(_load_json(sys.argv[1]))
    except DefinitionError as e:
        print(f"Definition is invalid ({len(e.errors)} problem(s)):")
        for error in e.errors:
            print(f"  - {error}")
        return 1

    print(f"Definition OK: {len(model)} sections, {len(model.routes)} routes")
    if len(sys.argv) == 3:
        return walk(model, _load_json(sys.argv[2]))
    return 0


if __name__ == "__main__":
    sys.exit(main())
