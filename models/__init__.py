from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from models.allocation import Allocation
from models.access_grant import AccessGrant
from models.performance import PerformanceRecord
from models.registry_state import RegistryState
