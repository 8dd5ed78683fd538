"""
Seed data and loader for the `documents` table searched by ask-ai.

Each article of the internal rules (Regimento Interno) is one document. The
tag string lists the everyday words residents use for the topic, so that a
question like "posso receber o ifood no apartamento?" lands on the delivery
article. Tags are embedded together with the title and content.
"""

import logging
from dataclasses import dataclass

from api.services.supabase import SupabaseService, error_message
from knowledge.config import SeedConfig
from knowledge.embeddings import TextEmbedder, get_embedder

logger = logging.getLogger(__name__)


@dataclass
class KnowledgeDocument:
    """One searchable knowledge base entry."""

    title: str
    content: str
    tags: str = ""

    def embedding_text(self) -> str:
        return f"{self.title}. {self.content} {self.tags}".strip()

    def to_row(self, source: str, embedding: list[float]) -> dict:
        return {
            "title": self.title,
            "content": self.content,
            "tags": self.tags,
            "embedding": embedding,
            "metadata": {"source": source, "title": self.title},
        }


REGIMENTO_DOCUMENTS = [
    KnowledgeDocument(
        title="Horário de Silêncio",
        content=(
            "Artigo 1º: É obrigatório guardar silêncio das 22h00 às 06h00. "
            "Exceção: Em Julho, Dezembro e Janeiro, o silêncio começa às 23h00."
        ),
        tags="barulho som alto música festa incomodar vizinho dormir furadeira obra martelo",
    ),
    KnowledgeDocument(
        title="Uso da Piscina",
        content=(
            "Artigo 28º: A piscina é exclusiva para moradores e até 4 convidados. "
            "É proibido: vidro, comer na borda, fumar, usar jeans e óleo bronzeador. "
            "Obrigatório exame médico."
        ),
        tags="banho nadar convidados visitante churrasco na piscina vidro bebida cerveja roupa",
    ),
    KnowledgeDocument(
        title="Animais de Estimação (Pets)",
        content=(
            "Artigo 34º: Permitido 02 animais por unidade. Proibido na área de lazer "
            "(piscina, quadra). Devem usar coleira e guia nas áreas comuns. "
            "O dono deve recolher os dejetos."
        ),
        tags="cachorro cão gato bicho estimação passear cocô focinheira latido morder solto",
    ),
    KnowledgeDocument(
        title="Mudanças",
        content=(
            "Artigo 44º: Mudanças permitidas de Segunda a Sexta (08h-12h e 14h-18h) "
            "e Sábado (08h-12h). Proibido Domingos e Feriados. Agendar na portaria."
        ),
        tags="mudar transporte caminhão móveis entrar sair chegar horário agendamento",
    ),
    KnowledgeDocument(
        title="Obras e Reformas",
        content=(
            "Artigo 44º: Obras seguem o horário: Seg-Sex (08h-18h) e Sáb (08h-12h). "
            "Proibido Domingo. Entulho deve ser retirado por caçamba."
        ),
        tags="construção pedreiro pintor martelo barulho furar parede quebrar piso caçamba lixo resto",
    ),
    KnowledgeDocument(
        title="Coleta de Lixo",
        content=(
            "Artigo 3º: Coleta diária às 07:30 e 15:30. Colocar na lixeira apenas "
            "nestes horários. Proibido aos domingos."
        ),
        tags="saco lixeira fedor resto comida reciclável orgânico descarte jogar fora",
    ),
    KnowledgeDocument(
        title="Entregadores e Delivery",
        content=(
            "Artigo 8º: Entregadores (iFood, Gás, Água) NÃO sobem. O morador deve "
            "retirar na portaria. Motoboy deve tirar o capacete."
        ),
        tags="ifood uber eats pizza correio encomenda pacote sedex mercado livre receber pedido portaria subir",
    ),
    KnowledgeDocument(
        title="Reserva do Salão de Festas",
        content=(
            "Artigo 23º: Reserva com 5 dias de antecedência. Taxa de 30% do condomínio. "
            "Limite de 100 pessoas. Som até 01h00."
        ),
        tags="alugar festa aniversário churrasco reunião evento pagar boleto lista convidados",
    ),
    KnowledgeDocument(
        title="Garagem e Veículos",
        content=(
            "Artigo 15º: Velocidade máx 10km/h. Proibido estacionar na rua. "
            "Visitante usa vaga da unidade ou estaciona fora."
        ),
        tags="carro moto estacionamento vaga parar visitante multa correr velocidade pneu furado",
    ),
]


def seed_documents(
    service: SupabaseService,
    documents: list[KnowledgeDocument] | None = None,
    config: SeedConfig | None = None,
    embedder: TextEmbedder | None = None,
) -> tuple[int, list[str]]:
    """
    Load documents into the knowledge base.

    Returns:
        (number inserted, titles that failed)
    """
    config = config or SeedConfig()
    documents = REGIMENTO_DOCUMENTS if documents is None else documents
    embedder = embedder or get_embedder()

    if config.dry_run:
        logger.info(f"[DRY RUN] Would seed {len(documents)} documents")
        return 0, []

    if config.clear_existing:
        service.clear_documents()
        logger.info("Cleared documents table")

    embeddings = embedder.embed_texts([d.embedding_text() for d in documents])

    inserted = 0
    failed: list[str] = []
    for document, embedding in zip(documents, embeddings):
        try:
            service.insert_document(document.to_row(config.source, embedding))
            inserted += 1
            logger.info(f"Seeded: {document.title}")
        except Exception as e:
            failed.append(document.title)
            logger.error(f"Failed to seed {document.title}: {error_message(e)}")

    return inserted, failed
