from .operations import Add, Delete, Operation, Put, Update
from .store import LedgerStore, QueryPage
