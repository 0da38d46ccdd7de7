"""서비스 조립 - 설정으로부터 동기화기와 원격 쿼리 에이전트를 구성."""

from dataclasses import dataclass
from typing import Optional

from datashorts.adapters.database.metadata_store import MetadataStore
from datashorts.adapters.database.postgres_adapter import PostgresAdapter
from datashorts.adapters.llm.openai_client import OpenAIClient
from datashorts.adapters.vector_store.milvus_adapter import MilvusAdapter
from datashorts.agent.context_retriever import SchemaContextRetriever
from datashorts.agent.history import QueryHistoryRecorder
from datashorts.agent.query_advisor import QueryAdvisor
from datashorts.agent.remote_query_agent import RemoteQueryAgent
from datashorts.core.config import Settings
from datashorts.core.logging import setup_logging
from datashorts.sync.embedding_reader import EmbeddingSchemaReader
from datashorts.sync.embedding_service import EmbeddingService
from datashorts.sync.schema_indexer import SchemaIndexer
from datashorts.sync.schema_reader import SchemaReader
from datashorts.sync.synchronizer import SchemaSynchronizer


@dataclass
class Services:
    """조립된 서비스 모음."""

    settings: Settings
    metadata_store: MetadataStore
    postgres_adapter: PostgresAdapter
    milvus_adapter: MilvusAdapter
    synchronizer: SchemaSynchronizer
    agent: RemoteQueryAgent

    def close(self) -> None:
        self.postgres_adapter.close()


def build_services(settings: Optional[Settings] = None) -> Services:
    """설정으로부터 전체 서비스를 구성.

    Milvus 연결과 컬렉션 생성이 이 시점에 수행된다.

    Args:
        settings: 애플리케이션 설정 (없으면 환경 변수에서 로드)

    Returns:
        Services 객체
    """
    settings = settings or Settings()
    setup_logging(settings.log_level)

    metadata_store = MetadataStore(settings)
    postgres_adapter = PostgresAdapter(settings, metadata_store)

    milvus_adapter = MilvusAdapter(settings)
    milvus_adapter.connect()

    embedding_service = EmbeddingService(settings)
    collection_name = settings.milvus_collection_name

    synchronizer = SchemaSynchronizer(
        metadata_store=metadata_store,
        schema_reader=SchemaReader(postgres_adapter),
        embedding_reader=EmbeddingSchemaReader(
            milvus_adapter, collection_name, batch_size=settings.scan_batch_size
        ),
        schema_indexer=SchemaIndexer(
            embedding_service=embedding_service,
            milvus_adapter=milvus_adapter,
            collection_name=collection_name,
        ),
    )

    agent = RemoteQueryAgent(
        executor=postgres_adapter,
        synchronizer=synchronizer,
        retriever=SchemaContextRetriever(
            embedding_service=embedding_service,
            milvus_adapter=milvus_adapter,
            collection_name=collection_name,
            top_k=settings.context_top_k,
        ),
        advisor=QueryAdvisor(OpenAIClient(settings)),
        history_recorder=QueryHistoryRecorder(
            metadata_store, max_result_rows=settings.history_result_rows
        ),
    )

    return Services(
        settings=settings,
        metadata_store=metadata_store,
        postgres_adapter=postgres_adapter,
        milvus_adapter=milvus_adapter,
        synchronizer=synchronizer,
        agent=agent,
    )
