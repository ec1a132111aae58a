"""Instantiates the storage object shared by the API and the CLI commands."""
from models.db_storage import DBStorage

storage = DBStorage()
storage.reload()
