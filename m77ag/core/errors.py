"""Exception types shared by the data layer and the API."""


class StoreError(Exception):
    """Any failure raised by the storage engine (I/O, bad SQL, constraint)."""


class UnknownDatabase(StoreError):
    """A logical database name that was never registered with the router."""

    def __init__(self, name):
        super().__init__(f"Database {name} not found")
        self.name = name


class ProposalNotFound(LookupError):
    """A lookup that succeeded but matched no proposal."""

    def __init__(self, proposal_id):
        super().__init__(f"Proposal {proposal_id} not found")
        self.proposal_id = proposal_id
