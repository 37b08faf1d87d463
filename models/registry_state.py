from models import db


class RegistryState(db.Model):
    """Singleton row: allocation counter, controller identity, last logical time."""

    __tablename__ = "registry_state"

    SINGLETON_ID = 1

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    allocation_counter = db.Column(db.BigInteger, nullable=False, default=0)
    controller = db.Column(db.String(128), nullable=False)
    last_height = db.Column(db.BigInteger, nullable=False, default=0)

    @classmethod
    def load(cls, for_update=False):
        """Fetch the singleton row, optionally locking it for the transaction."""
        query = cls.query.filter_by(id=cls.SINGLETON_ID)
        if for_update:
            query = query.with_for_update()
        return query.first()

    @classmethod
    def initialize(cls, controller):
        """Create the singleton if missing. The controller of an existing row is kept."""
        state = cls.load()
        if state is None:
            state = cls(
                id=cls.SINGLETON_ID,
                allocation_counter=0,
                controller=controller,
                last_height=0,
            )
            db.session.add(state)
            db.session.commit()
        return state

    def next_allocation_id(self) -> int:
        """Advance the counter and return the new id. Commits with the caller's transaction."""
        self.allocation_counter += 1
        return self.allocation_counter

    def to_dict(self):
        return {
            "allocation_counter": self.allocation_counter,
            "controller": self.controller,
            "last_height": self.last_height,
        }
