import logging
import socket
from contextlib import asynccontextmanager

from motor.motor_asyncio import AsyncIOMotorClient
from fastapi import Request

from config.config import MONGODB_URI, MONGODB_USERNAME, MONGODB_PASSWORD, CLUSTER_NAME, APP_NAME, DATABASE_NAME
from helpers.DateTimeSerializer import DateTimeSerializerVisitor

logger = logging.getLogger(__name__)


def get_db(request: Request):
    """Dependency to get database instance from app state"""
    return request.app.state.db


class Database:
    def __init__(self, client=None, database_name=DATABASE_NAME):
        if MONGODB_URI:
            self.MONGO_URI = MONGODB_URI
        else:
            self.MONGO_URI = f"mongodb+srv://{MONGODB_USERNAME}:{MONGODB_PASSWORD}@{CLUSTER_NAME}.mongodb.net/?retryWrites=true&w=majority&appName={APP_NAME}"
        self.database_name = database_name
        self.client = client
        self.db = None

    def connect(self):
        if self.client is None:
            self.client = AsyncIOMotorClient(self.MONGO_URI)
        self.db = self.client[self.database_name]
        logger.info("Connected to MongoDB database %s on host %s", self.database_name, socket.gethostname())

    def serializer(self, obj):
        visitor = DateTimeSerializerVisitor()
        return visitor.visit(obj)

    def check_connection(self):
        if MONGODB_URI or not CLUSTER_NAME:
            return

        hostname = f"{CLUSTER_NAME}.mongodb.net"
        logger.info("Testing DNS resolution for: %s", hostname)
        dns_success = False

        try:
            ip = socket.gethostbyname(hostname)
            logger.info("Standard DNS resolution successful: %s -> %s", hostname, ip)
            dns_success = True
        except socket.gaierror as dns_error:
            logger.warning("Standard DNS resolution failed: %s", dns_error)
            try:
                socket.setdefaulttimeout(10)
                ip = socket.gethostbyname(hostname)
                logger.info("DNS resolution with timeout successful: %s -> %s", hostname, ip)
                dns_success = True
            except socket.gaierror as dns_error2:
                logger.warning("DNS resolution with timeout also failed: %s", dns_error2)

        if not dns_success:
            logger.warning(
                "Could not resolve %s; check firewall/proxy, DNS servers and the cluster name. "
                "Continuing without DNS verification.", hostname
            )

    def get_collection(self, collection_name):
        """Get a collection object for direct MongoDB operations"""
        return self.db[collection_name]

    async def create_index(self, collection_name, keys, unique=False):
        """Create an index if it does not exist yet; returns its name"""
        collection = self.db[collection_name]
        name = await collection.create_index(keys, unique=unique)
        logger.info("Index %s ready on %s", name, collection_name)
        return name

    @asynccontextmanager
    async def transaction(self):
        """
        Run several writes as one unit. Pass the yielded session to every
        call that belongs to the transaction; any exception aborts all of them.
        """
        async with await self.client.start_session() as session:
            async with session.start_transaction():
                yield session

    async def add(self, collection_name, data, session=None):
        collection = self.db[collection_name]
        result = await collection.insert_one(data, session=session)

        if result.inserted_id:
            data["_id"] = str(result.inserted_id)
            data = self.serializer(data)
            return {
                "status": 200,
                "data": data,
                "message": "Document added successfully"
            }
        else:
            return {
                "status": 500,
                "message": "Failed to add document"
            }

    async def find_many(self, collection_name, query=None, sort=None, limit=None, session=None):
        """Find multiple documents matching query"""
        collection = self.db[collection_name]
        cursor = collection.find(query or {}, session=session)

        if sort:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(limit)

        documents = []
        async for doc in cursor:
            doc["_id"] = str(doc["_id"])
            doc = self.serializer(doc)
            documents.append(doc)

        return {
            "status": 200,
            "data": documents,
            "message": "Documents retrieved successfully"
        }

    async def find_one(self, collection_name, query, session=None):
        """Find a single document (returns document directly or None)"""
        collection = self.db[collection_name]
        document = await collection.find_one(query, session=session)

        if document:
            document["_id"] = str(document["_id"])
            document = self.serializer(document)

        return document

    async def count(self, collection_name, query=None, session=None):
        collection = self.db[collection_name]
        return await collection.count_documents(query or {}, session=session)

    async def update(self, collection_name, query, update_string, session=None):
        collection = self.db[collection_name]
        result = await collection.update_one(query, update_string, session=session)

        return {
            "status": 200 if result.modified_count > 0 else 404,
            "matched_count": result.matched_count,
            "modified_count": result.modified_count,
            "message": "Document updated successfully" if result.modified_count > 0 else "Document not found or no changes made"
        }

    async def update_many(self, collection_name, query, update_string, session=None):
        """Update multiple documents"""
        collection = self.db[collection_name]
        result = await collection.update_many(query, update_string, session=session)

        return {
            "status": 200,
            "matched_count": result.matched_count,
            "modified_count": result.modified_count,
            "message": f"Updated {result.modified_count} documents"
        }

    async def delete(self, collection_name, query, session=None):
        collection = self.db[collection_name]
        result = await collection.delete_one(query, session=session)

        return {
            "status": 200 if result.deleted_count > 0 else 404,
            "deleted_count": result.deleted_count,
            "message": "Document deleted successfully" if result.deleted_count > 0 else "Document not found"
        }

    async def delete_many(self, collection_name, query, session=None):
        """Delete every document matching query"""
        collection = self.db[collection_name]
        result = await collection.delete_many(query, session=session)

        return {
            "status": 200,
            "deleted_count": result.deleted_count,
            "message": f"Deleted {result.deleted_count} documents"
        }
