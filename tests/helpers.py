"""Constants and test doubles shared by the test modules."""

SHA_CHECKOUT = "b4ffde65f46336ab88eb53be808477a3936bae11"
SHA_SETUP_PYTHON = "82c7e631bb3cdc910f68e0081d67478d79c6982d"
SHA_MAIN = "0123456789abcdef0123456789abcdef01234567"


class FakeGitHubAPI:
    """Resolver double: a fixed table of (owner, repo, ref) -> sha."""

    def __init__(self, refs=None):
        self.refs = refs if refs is not None else {
            ("actions", "checkout", "v4"): SHA_CHECKOUT,
            ("actions", "setup-python", "v5.1.0"): SHA_SETUP_PYTHON,
            ("octo-org", "tools", "main"): SHA_MAIN,
        }
        self.calls = []

    def resolve_ref(self, owner, repo, ref):
        self.calls.append((owner, repo, ref))
        return self.refs.get((owner, repo, ref))
