import os

from core.settings import settings

DATA_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data"
)
PLANNER_FILE_NAME = "lumina_data.json"


def get_planner_data_file() -> str:
    """
    Path of the local planner snapshot.

    Returns:
        str: ``PLANNER_DATA_FILE`` when set, otherwise ``<DATA_DIR>/lumina_data.json``
    """
    if settings.PLANNER_DATA_FILE:
        return settings.PLANNER_DATA_FILE
    return os.path.join(DATA_DIR, PLANNER_FILE_NAME)
