from datetime import date

import pytest

API = "/api/v1"


async def test_entry_creates_sublot(client, create_entry):
    entry = await create_entry(peso=1000, valor_total=40000)

    assert entry["codigo"].startswith("ENT")
    assert entry["gera_custo"] is True
    assert entry["sublote_codigo"].startswith("SUB")

    resp = await client.get(f"{API}/sublots/{entry['sublote_id']}")
    assert resp.status_code == 200
    sublot = resp.json()
    assert sublot["peso_kg"] == 1000
    assert sublot["custo_unitario_total"] == pytest.approx(40.0)
    assert sublot["status"] == "disponivel"
    assert sublot["cenario"] == "proprio"


async def test_entry_rejects_net_weight_above_gross(client, catalog):
    resp = await client.post(f"{API}/entries/", json={
        "data_entrada": "2024-03-01",
        "peso_bruto_kg": 100,
        "peso_liquido_kg": 120,
    })
    assert resp.status_code == 422


async def test_batch_lifecycle(client, create_entry):
    entry = await create_entry(peso=1100, valor_total=4000)

    resp = await client.post(f"{API}/batches/", json={
        "data_inicio": "2024-03-02",
        "perda_cobrada_pct": 5,
        "custo_mo_terceiro": 300,
        "custo_frete_ida": 200,
        "lme_referencia_kg": 6.0,
        "itens": [{"sublote_id": entry["sublote_id"]}],
        "documentos": [{"entrada_id": entry["id"], "valor_documento": 4000, "taxa_financeira_pct": 2.5}],
    })
    assert resp.status_code == 200, resp.text
    batch = resp.json()
    assert batch["codigo"].startswith("BEN")
    assert batch["status"] == "em_andamento"
    assert batch["peso_entrada_kg"] == 1100
    assert batch["documentos"][0]["taxa_financeira_valor"] == pytest.approx(100)
    assert batch["cenario"] == "proprio"
    assert batch["economia_vs_lme"] is None

    sublot = (await client.get(f"{API}/sublots/{entry['sublote_id']}")).json()
    assert sublot["status"] == "em_beneficiamento"

    preview = (await client.get(f"{API}/batches/{batch['id']}/loss-preview", params={"perda_real_pct": 3})).json()
    assert preview["valor"] == pytest.approx(132)
    assert preview["tem_lucro"] is True

    resp = await client.post(f"{API}/batches/{batch['id']}/finalize", json={
        "peso_saida_kg": 1000,
        "perda_real_pct": 3,
        "tipo_produto_saida_id": None,
    })
    assert resp.status_code == 200, resp.text
    done = resp.json()
    assert done["status"] == "finalizado"
    assert done["custo_total"] == pytest.approx(4600)
    assert done["custo_kg"] == pytest.approx(4.6)
    assert done["custos"]["custo_total"] == pytest.approx(4600)
    assert done["lucro_perda_kg"] == pytest.approx(22)
    assert done["lucro_perda_valor"] == pytest.approx(132)
    assert done["economia_vs_lme"] == pytest.approx(1400)
    assert len(done["itens_saida"]) == 1

    output_id = done["itens_saida"][0]["sublote_gerado_id"]
    output = (await client.get(f"{API}/sublots/{output_id}")).json()
    assert output["peso_kg"] == 1000
    assert output["custo_unitario_total"] == pytest.approx(4.6)
    assert output["dono_id"] is None
    assert output["lote_pai_id"] == entry["sublote_id"]

    consumed = (await client.get(f"{API}/sublots/{entry['sublote_id']}")).json()
    assert consumed["status"] == "consumido"

    resp = await client.post(f"{API}/batches/{batch['id']}/finalize", json={"peso_saida_kg": 1000})
    assert resp.status_code == 400

    trace = (await client.get(f"{API}/sublots/{output_id}/cost-trace")).json()
    assert trace["origem"] == "beneficiamento"
    assert trace["custo_total"] == pytest.approx(4600)
    assert trace["custo_kg"] == pytest.approx(4.6)
    assert trace["custo_original_insumos"] == pytest.approx(4000, rel=1e-4)

    kpis = (await client.get(f"{API}/reports/kpis")).json()
    assert kpis["economia_total"] == pytest.approx(1400)
    assert kpis["lucro_perda_total"] == pytest.approx(132)
    assert kpis["cenarios"]["proprio"]["count"] == 1
    assert kpis["detalhes"][0]["economia_kg"] == pytest.approx(1.4)

    logs = (await client.get(f"{API}/audit-logs/", params={"action": "finalize"})).json()
    assert logs["total"] == 1
    assert logs["data"][0]["table_name"] == "beneficiamentos"


async def test_batch_uses_lme_history_when_reference_missing(client, create_entry):
    await client.post(f"{API}/lme/prices", json={"data": "2024-02-28", "cobre_brl_kg": 48.0})
    await client.post(f"{API}/lme/prices", json={"data": "2024-03-10", "cobre_brl_kg": 52.0})
    entry = await create_entry(peso=100, valor_total=4000)

    batch = (await client.post(f"{API}/batches/", json={
        "data_inicio": "2024-03-02",
        "itens": [{"sublote_id": entry["sublote_id"]}],
    })).json()
    done = (await client.post(f"{API}/batches/{batch['id']}/finalize", json={"peso_saida_kg": 95})).json()

    assert done["lme_referencia_kg"] == pytest.approx(48.0)
    assert done["perda_real_pct"] == pytest.approx(5.0)
    # Sem documentos: custo de aquisição vem do valor da entrada
    assert done["custo_total"] == pytest.approx(4000)


async def test_batch_consumes_whole_sublot_and_cancel_releases_it(client, create_entry):
    entry = await create_entry(peso=1000, valor_total=40000)

    # Peso parcial enviado é ignorado: o sublote entra inteiro
    batch = (await client.post(f"{API}/batches/", json={
        "data_inicio": "2024-03-02",
        "itens": [{"sublote_id": entry["sublote_id"], "peso_kg": 400}],
    })).json()
    assert batch["peso_entrada_kg"] == 1000
    assert batch["itens_entrada"][0]["peso_kg"] == 1000

    sublot = (await client.get(f"{API}/sublots/{entry['sublote_id']}")).json()
    assert sublot["status"] == "em_beneficiamento"
    assert sublot["peso_kg"] == 1000

    resp = await client.post(f"{API}/batches/", json={
        "data_inicio": "2024-03-03",
        "itens": [{"sublote_id": entry["sublote_id"]}],
    })
    assert resp.status_code == 400

    resp = await client.post(f"{API}/batches/{batch['id']}/cancel")
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelado"

    sublot = (await client.get(f"{API}/sublots/{entry['sublote_id']}")).json()
    assert sublot["status"] == "disponivel"
    assert sublot["peso_kg"] == 1000

    resp = await client.post(f"{API}/batches/{batch['id']}/finalize", json={"peso_saida_kg": 300})
    assert resp.status_code == 400

    # Depois do cancelamento o sublote volta a ser consumido uma única vez
    again = (await client.post(f"{API}/batches/", json={
        "data_inicio": "2024-03-04",
        "itens": [{"sublote_id": entry["sublote_id"]}],
    })).json()
    done = (await client.post(f"{API}/batches/{again['id']}/finalize", json={"peso_saida_kg": 950})).json()
    assert done["custo_total"] == pytest.approx(40000)


async def test_second_stage_batch_costs_processed_input(client, create_entry):
    entry = await create_entry(peso=1100, valor_total=4000)
    first = (await client.post(f"{API}/batches/", json={
        "data_inicio": "2024-03-02",
        "custo_mo_terceiro": 300,
        "custo_frete_ida": 200,
        "lme_referencia_kg": 6.0,
        "itens": [{"sublote_id": entry["sublote_id"]}],
        "documentos": [{"entrada_id": entry["id"], "valor_documento": 4000, "taxa_financeira_pct": 2.5}],
    })).json()
    first = (await client.post(f"{API}/batches/{first['id']}/finalize", json={"peso_saida_kg": 1000})).json()
    assert first["custo_total"] == pytest.approx(4600)
    stage_one = first["itens_saida"][0]["sublote_gerado_id"]

    output = (await client.get(f"{API}/sublots/{stage_one}")).json()
    assert output["entrada_id"] is None
    assert output["lote_pai_id"] == entry["sublote_id"]
    assert output["cenario"] == "proprio"

    second = (await client.post(f"{API}/batches/", json={
        "data_inicio": "2024-03-05",
        "custo_mo_ibrac": 400,
        "lme_referencia_kg": 6.0,
        "itens": [{"sublote_id": stage_one}],
    })).json()
    assert second["cenario"] == "proprio"
    assert second["custos"]["custo_aquisicao"] == pytest.approx(4600)

    done = (await client.post(f"{API}/batches/{second['id']}/finalize", json={"peso_saida_kg": 950})).json()
    # Custo do primeiro estágio + MO própria, sem voltar ao valor da entrada
    assert done["custo_total"] == pytest.approx(5000)
    assert done["custo_kg"] == pytest.approx(5000 / 950, rel=1e-4)

    stage_two = (await client.get(f"{API}/sublots/{done['itens_saida'][0]['sublote_gerado_id']}")).json()
    assert stage_two["lote_pai_id"] == stage_one
    assert stage_two["entrada_id"] is None
    assert stage_two["cenario"] == "proprio"


async def test_processed_remittance_keeps_industrialization_scenario(client, create_entry):
    entry = await create_entry(peso=500, valor_total=None, tipo="remessa", dono="terceiro")

    batch = (await client.post(f"{API}/batches/", json={
        "data_inicio": "2024-03-02",
        "custo_mo_terceiro": 300,
        "itens": [{"sublote_id": entry["sublote_id"]}],
    })).json()
    done = (await client.post(f"{API}/batches/{batch['id']}/finalize", json={"peso_saida_kg": 480})).json()

    output = (await client.get(f"{API}/sublots/{done['itens_saida'][0]['sublote_gerado_id']}")).json()
    assert output["entrada_id"] is None
    assert output["cenario"] == "industrializacao"

    saida = (await client.post(f"{API}/exits/", json={
        "data_saida": "2024-03-10",
        "tipo_saida": "devolucao",
        "valor_unitario": 50,
        "custo_mo": 300,
        "itens": [{"sublote_id": output["id"]}],
    })).json()
    assert saida["cenario_operacao"] == "industrializacao"


async def test_batch_validations(client, create_entry):
    entry = await create_entry(peso=100, valor_total=1000)

    resp = await client.post(f"{API}/batches/999/finalize", json={"peso_saida_kg": 10})
    assert resp.status_code == 404

    resp = await client.post(f"{API}/batches/", json={
        "data_inicio": "2024-03-02",
        "itens": [{"sublote_id": 999}],
    })
    assert resp.status_code == 404

    await client.post(f"{API}/batches/", json={
        "data_inicio": "2024-03-02",
        "itens": [{"sublote_id": entry["sublote_id"]}],
    })
    resp = await client.post(f"{API}/batches/", json={
        "data_inicio": "2024-03-02",
        "itens": [{"sublote_id": entry["sublote_id"]}],
    })
    assert resp.status_code == 400


async def test_owner_transfer_adds_surcharge(client, catalog, create_entry):
    entry = await create_entry(peso=1000, valor_total=40000)

    resp = await client.post(f"{API}/sublots/{entry['sublote_id']}/transfer", json={
        "dono_destino_id": catalog["terceiro"],
        "valor_acrescimo": 500,
    })
    assert resp.status_code == 200, resp.text
    transfer = resp.json()
    assert transfer["custo_unitario_anterior"] == pytest.approx(40.0)
    assert transfer["custo_unitario_novo"] == pytest.approx(40.5)

    sublot = (await client.get(f"{API}/sublots/{entry['sublote_id']}")).json()
    assert sublot["dono_id"] == catalog["terceiro"]
    assert sublot["cenario"] == "operacao_terceiro"

    transfers = (await client.get(f"{API}/sublots/{entry['sublote_id']}/transfers")).json()
    assert len(transfers) == 1

    resp = await client.post(f"{API}/sublots/{entry['sublote_id']}/transfer", json={
        "dono_destino_id": catalog["terceiro"],
    })
    assert resp.status_code == 400


async def test_sublot_list_totals(client, create_entry):
    await create_entry(peso=100, valor_total=1000)
    await create_entry(peso=300, valor_total=6000)
    busy = await create_entry(peso=200, valor_total=10000)
    await client.post(f"{API}/batches/", json={
        "data_inicio": "2024-03-02",
        "itens": [{"sublote_id": busy["sublote_id"]}],
    })

    data = (await client.get(f"{API}/sublots/", params={"status": "disponivel"})).json()

    assert data["total"] == 2
    assert data["peso_total_kg"] == 400
    assert data["custo_medio_ponderado"] == pytest.approx(17.5)
    assert data["custo_medio_disponivel"] == pytest.approx(17.5)

    data = (await client.get(f"{API}/sublots/")).json()

    assert data["total"] == 3
    assert data["custo_medio_ponderado"] == pytest.approx(17000 / 600)
    # Sublote em beneficiamento fica fora do custo médio disponível
    assert data["custo_medio_disponivel"] == pytest.approx(17.5)


async def test_third_party_exit_creates_settlements(client, catalog, create_entry):
    entry = await create_entry(peso=500, valor_total=20000, dono="terceiro")

    resp = await client.post(f"{API}/exits/", json={
        "data_saida": "2024-03-10",
        "cliente": "Fundição Sul",
        "valor_unitario": 50,
        "custo_mo": 300,
        "custos_adicionais": 200,
        "itens": [{"sublote_id": entry["sublote_id"]}],
    })
    assert resp.status_code == 200, resp.text
    saida = resp.json()
    assert saida["codigo"].startswith("SAI")
    assert saida["cenario_operacao"] == "operacao_terceiro"
    assert saida["valor_total"] == pytest.approx(25000)
    assert saida["custos_cobrados"] == pytest.approx(500)
    assert saida["comissao_ibrac"] == pytest.approx(2500)
    assert saida["valor_repasse_dono"] == pytest.approx(22000)

    sublot = (await client.get(f"{API}/sublots/{entry['sublote_id']}")).json()
    assert sublot["status"] == "vendido"

    receitas = (await client.get(f"{API}/settlements/", params={"tipo": "receita"})).json()
    assert receitas["total"] == 1
    assert receitas["data"][0]["valor"] == pytest.approx(2500)

    pending = (await client.get(f"{API}/settlements/pending")).json()
    assert pending["total_geral"] == pytest.approx(22000)
    group = pending["grupos"][0]
    assert group["dono_id"] == str(catalog["terceiro"])
    assert group["dono_nome"] == "Metais Silva"

    settlement_id = group["acertos"][0]["id"]
    resp = await client.post(f"{API}/settlements/{settlement_id}/reconcile")
    assert resp.status_code == 200
    assert resp.json()["status"] == "pago"
    assert resp.json()["data_pagamento"] == date.today().isoformat()

    resp = await client.post(f"{API}/settlements/{settlement_id}/reconcile")
    assert resp.status_code == 400

    pending = (await client.get(f"{API}/settlements/pending")).json()
    assert pending["grupos"] == []

    statement = (await client.get(f"{API}/reports/owner-statement")).json()
    row = next(r for r in statement["data"] if r["dono_id"] == catalog["terceiro"])
    assert row["receita_bruta"] == pytest.approx(25000)
    assert row["valor_compras"] == pytest.approx(20000)
    assert row["cenario_predominante"] == "operacao_terceiro"
    assert row["resultado_liquido"] == pytest.approx(25000 - 20000 - 2500)


async def test_industrialization_exit_charges_service(client, create_entry):
    entry = await create_entry(peso=500, valor_total=None, tipo="remessa", dono="terceiro")

    saida = (await client.post(f"{API}/exits/", json={
        "data_saida": "2024-03-10",
        "tipo_saida": "devolucao",
        "valor_unitario": 50,
        "custo_mo": 300,
        "custo_perda": 100,
        "itens": [{"sublote_id": entry["sublote_id"]}],
    })).json()

    assert saida["cenario_operacao"] == "industrializacao"
    assert saida["valor_total"] == pytest.approx(400)
    assert saida["valor_repasse_dono"] == 0

    settlements = (await client.get(f"{API}/settlements/")).json()
    assert settlements["total"] == 0


async def test_exit_rejects_unavailable_sublot(client, create_entry):
    entry = await create_entry(peso=100, valor_total=1000)
    payload = {"data_saida": "2024-03-10", "valor_unitario": 10, "itens": [{"sublote_id": entry["sublote_id"]}]}

    assert (await client.post(f"{API}/exits/", json=payload)).status_code == 200
    assert (await client.post(f"{API}/exits/", json=payload)).status_code == 400


async def test_owner_with_movement_cannot_be_deleted(client, catalog, create_entry):
    await create_entry(dono="terceiro")

    resp = await client.delete(f"{API}/owners/{catalog['terceiro']}")
    assert resp.status_code == 400

    resp = await client.post(f"{API}/owners/", json={"nome": "Outra IBRAC", "is_ibrac": True})
    assert resp.status_code == 400


async def test_kpi_settlements_follow_owner_and_period(client, catalog, create_entry):
    entry = await create_entry(peso=500, valor_total=20000, dono="terceiro")
    await client.post(f"{API}/exits/", json={
        "data_saida": "2024-03-10",
        "valor_unitario": 50,
        "custo_mo": 300,
        "custos_adicionais": 200,
        "itens": [{"sublote_id": entry["sublote_id"]}],
    })

    kpis = (await client.get(f"{API}/reports/kpis", params={"dono_id": catalog["terceiro"]})).json()
    assert kpis["repasses_pendentes"] == pytest.approx(22000)
    assert kpis["lucro_comissao_total"] == pytest.approx(2500)

    kpis = (await client.get(f"{API}/reports/kpis", params={"dono_id": catalog["ibrac"]})).json()
    assert kpis["repasses_pendentes"] == 0
    assert kpis["lucro_comissao_total"] == 0
    assert kpis["lucro_total_ibrac"] == 0

    kpis = (await client.get(f"{API}/reports/kpis", params={"data_inicio": "2024-04-01"})).json()
    assert kpis["repasses_pendentes"] == 0
    assert kpis["lucro_comissao_total"] == 0

    kpis = (await client.get(f"{API}/reports/kpis", params={"data_fim": "2024-03-31"})).json()
    assert kpis["repasses_pendentes"] == pytest.approx(22000)
    assert kpis["lucro_comissao_total"] == pytest.approx(2500)


async def test_owner_statement_counts_open_batches(client, catalog, create_entry):
    # Sem tipo de entrada a operação não é compra
    entry = await create_entry(peso=800, valor_total=20000, dono="terceiro", tipo_entrada_id=None)
    await client.post(f"{API}/batches/", json={
        "data_inicio": "2024-03-02",
        "custo_frete_ida": 200,
        "itens": [{"sublote_id": entry["sublote_id"]}],
    })

    statement = (await client.get(f"{API}/reports/owner-statement")).json()
    row = next(r for r in statement["data"] if r["dono_id"] == catalog["terceiro"])
    assert row["total_entradas"] == 1
    assert row["valor_compras"] == 0
    assert row["total_beneficiamentos"] == 1
    assert row["custo_frete"] == pytest.approx(200)
