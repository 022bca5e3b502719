import pytest

from ibrac.services.kpis import BatchData, DocumentLink, InputItemData, SublotRef
from ibrac.services.reports import (
    NO_OWNER_KEY, BatchOwnerData, EntryData, ExitData, OwnerData, PendingSettlement,
    build_cost_trace, build_owner_statement, group_pending_payouts, statement_totals,
)
from ibrac.services.scenarios import Scenario

OWNERS = [
    OwnerData(id=1, nome="IBRAC", is_ibrac=True),
    OwnerData(id=2, nome="Metais Silva", taxa_operacao_pct=10),
    OwnerData(id=3, nome="Sem movimento"),
]


def _statement():
    entries = [
        EntryData(owner_id=1, peso_liquido_kg=1000, valor_total=40000, generates_cost=True),
        EntryData(owner_id=2, peso_liquido_kg=500, valor_total=20000, generates_cost=True),
        # remessa: não soma compras
        EntryData(owner_id=2, peso_liquido_kg=300, valor_total=9000, generates_cost=False),
        EntryData(owner_id=99, peso_liquido_kg=10, valor_total=1),
    ]
    batches = [
        BatchOwnerData(owner_id=1, custo_frete_ida=200, custo_mo_ibrac=300, lucro_perda_valor=150),
        BatchOwnerData(owner_id=2, custo_frete_volta=100, custo_mo_terceiro=400),
    ]
    exits = [
        ExitData(
            owner_id=2, generates_cost=True, peso_total_kg=480, valor_total=24000,
            custos_cobrados=500, comissao_ibrac=2400, valor_repasse_dono=21100,
        ),
    ]
    return build_owner_statement(OWNERS, entries, batches, exits)


def test_owner_statement_rows():
    rows = _statement()

    assert [r.dono_nome for r in rows] == ["IBRAC", "Metais Silva"]
    ibrac, silva = rows

    assert ibrac.total_entradas == 1
    assert ibrac.valor_compras == 40000
    assert ibrac.custo_total_benef == 500
    # IBRAC: lucro na perda + comissão + custos cobrados
    assert ibrac.resultado_liquido == 150

    assert silva.total_entradas == 2
    assert silva.peso_entrada_kg == 800
    assert silva.valor_compras == 20000
    assert silva.custo_frete == 100
    assert silva.custo_mo == 400
    assert silva.total_saidas == 1
    assert silva.receita_bruta == 24000
    assert silva.repasse_dono == 21100
    assert silva.cenario_predominante == Scenario.OPERACAO_TERCEIRO
    assert silva.resultado_liquido == 24000 - 20000 - 500 - 2400


def test_owner_statement_filter_and_totals():
    rows = build_owner_statement(OWNERS, [EntryData(owner_id=1, peso_liquido_kg=10)], [], [], owner_filter=2)
    assert rows == []

    totals = statement_totals(_statement())
    assert totals.peso_entrada == 1800
    assert totals.valor_compras == 60000
    assert totals.custo_benef == 1000
    assert totals.comissao_ibrac == 2400
    assert totals.resultado == pytest.approx(150 + 1100)


def test_group_pending_payouts():
    groups = group_pending_payouts([
        PendingSettlement(id=1, tipo="repasse", valor=100, owner_id=2, owner_name="Metais Silva"),
        PendingSettlement(id=2, tipo="divida", valor=None, owner_id=None, partner_name="Parceiro X"),
        PendingSettlement(id=3, tipo="repasse", valor=50, owner_id=2, owner_name="Metais Silva"),
        PendingSettlement(id=4, tipo="repasse", valor=10, owner_id=None),
    ])

    assert [g.dono_id for g in groups] == ["2", NO_OWNER_KEY]
    assert groups[0].total == 150
    assert [a.id for a in groups[0].acertos] == [1, 3]
    assert groups[1].dono_nome == "Parceiro X"
    assert groups[1].total == 10
    assert group_pending_payouts([]) == []


def test_cost_trace_of_batch():
    batch = BatchData(
        id=1, peso_saida_kg=1000, custo_mo_ibrac=200, custo_mo_terceiro=100,
        custo_frete_ida=150, custo_frete_volta=50,
    )
    docs = [
        DocumentLink(batch_id=1, valor_documento=4000, taxa_financeira_valor=100),
        DocumentLink(batch_id=2, valor_documento=777),
    ]
    items = [
        InputItemData(batch_id=1, peso_kg=600, sublot=SublotRef(custo_unitario_total=4.0)),
        InputItemData(batch_id=1, peso_kg=500, sublot=SublotRef(custo_unitario_total=None)),
    ]

    trace = build_cost_trace(batch, docs, items)

    assert trace.valor_documentos == 4000
    assert trace.custo_financeiro == 100
    assert trace.custos_adicionais == 600
    assert trace.custo_total == 4600
    assert trace.custo_original_insumos == 2400
    assert trace.custo_kg == pytest.approx(4.6)
    assert trace.custo_adicional_kg == pytest.approx(0.6)


def test_cost_trace_without_batch_is_zero():
    trace = build_cost_trace(None, [], [])
    assert trace.custo_total == 0
    assert trace.custo_kg == 0
