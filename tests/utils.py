SAMPLE_SOURCE = "let f = fun x -> f x in f"
SAMPLE_SOURCE_PATH = __file__


class FakeNamespace:
    """
    This class is a dummy object for mocking references to attributes
    in the `argparse.namespace` class.
    """
