"""
Load a TLE set and draw the satellites with their orbit tracks,
ground tracks and sensor cones.

Keys:
    arrows  move the view          + / -  zoom
    space   pause / resume time    n      select next satellite
    t       fly to and follow      l      follow without flying
    u       release the camera     o g c  toggle orbit, ground, cone
    q       quit
"""

import logging
import os
import sys
import time

from direct.showbase.ShowBase import ShowBase
from skyfield.api import load  # type: ignore

from errors import ConfigError
from p3dview.panda_viewport import PandaViewport
from sat_orbit import split_tle_records
from satellite_entity import SatelliteEntity
from sim_clock import SimClock
from viewer_config import ViewerConfig, apply_overrides, load_config

URLS = {
    "kuiper": "https://celestrak.org/NORAD/elements/gp.php?INTDES=2023-154",
    "GPS": "https://celestrak.org/NORAD/elements/gp.php?GROUP=gps-ops&FORMAT=tle",
    "stations": "https://celestrak.org/NORAD/elements/gp.php?GROUP=stations&FORMAT=tle",
    "starlink": "https://celestrak.org/NORAD/elements/gp.php?GROUP=starlink&FORMAT=tle",
    "weather": "https://celestrak.org/NORAD/elements/gp.php?GROUP=weather&FORMAT=tle",
}


def load_tle_text(selection: str) -> str:
    """
    Return TLE data for a named selection, or from a local file.
    Downloads are cached and reloaded when more than a week old.
    """
    if os.path.exists(selection):
        with open(selection) as f:
            return f.read()

    url = URLS[selection]
    print(f"loading constellation: {selection}")
    if not os.path.exists("cache"):
        os.mkdir("cache")

    reload = False
    filename = f"cache/{selection}.tle"
    if os.path.exists(filename):
        reload = os.stat(filename).st_mtime < time.time() - 60 * 60 * 24 * 7
    satellites = load.tle_file(url, filename=filename, reload=reload)
    print("Loaded %d satellites" % len(satellites))
    with open(filename) as f:
        return f.read()


def create_entities(viewport, tle_text: str, config: ViewerConfig) -> list[SatelliteEntity]:
    entities = []
    for record in split_tle_records(tle_text)[: config.display.max_satellites]:
        try:
            entities.append(SatelliteEntity(viewport, record, config))
        except ValueError as e:
            logging.error("skipping TLE record: %s", e)
    return entities


def run(config: ViewerConfig) -> None:
    tle_text = load_tle_text(config.display.selection)

    base = ShowBase()
    clock = SimClock(time_rate=config.clock.time_rate)
    panda_viewport = PandaViewport(base, clock)
    satellites = create_entities(panda_viewport.viewport, tle_text, config)
    for satellite in satellites:
        satellite.show()
    panda_viewport.setSatellites(satellites)
    logging.info("showing %d satellites", len(satellites))
    base.run()


def usage():
    print("Usage: run_viewer [--config <file>] [<selection> [<time_rate>]]")
    print("Available selections:")
    for option in URLS.keys():
        print(f"\t{option}")
    print("\tor the path of a local TLE file")


if __name__ == "__main__":
    args = sys.argv[1:]
    config_path = None
    if "--config" in args:
        i = args.index("--config")
        if i + 1 >= len(args):
            usage()
            sys.exit(-1)
        config_path = args[i + 1]
        del args[i : i + 2]

    try:
        config = load_config(config_path)
    except ConfigError as e:
        print(str(e))
        usage()
        sys.exit(-1)

    if len(args) > 2:
        usage()
        sys.exit(-1)
    try:
        config = apply_overrides(
            config,
            selection=args[0] if len(args) > 0 else None,
            time_rate=args[1] if len(args) > 1 else None,
        )
    except ConfigError as e:
        print(str(e))
        usage()
        sys.exit(-1)

    if config.display.selection not in URLS and not os.path.exists(config.display.selection):
        print(f"{config.display.selection} unknown")
        usage()
        sys.exit(-1)

    logging.basicConfig(level=config.display.log_level)
    print(f"\tRunning '{config.display.selection}' at {config.clock.time_rate}X speed")
    print("\tt to fly to the selected satellite, n to select the next one")
    print("\tq to quit")
    run(config)
