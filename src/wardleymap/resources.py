from importlib import resources


def load_example_map() -> str:
    with resources.files(__package__).joinpath("data/example_map.json").open("r", encoding="utf-8") as fh:
        return fh.read()
