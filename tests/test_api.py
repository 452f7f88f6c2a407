DATA = "2024-05-20"


def payload(dados, *cargas, **extra):
    corpo = {
        "id_veiculo": dados.carreta.id_veiculo,
        "data_frete": DATA,
        "ids_cargas": [c.id_carga for c in cargas],
    }
    corpo.update(extra)
    return corpo


class TestConsultas:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_configuracao(self, client):
        resposta = client.get("/configuracao")
        assert resposta.status_code == 200
        assert set(resposta.json()) == {"nome_empresa", "logo_url"}

    def test_motivos_substituicao(self, client):
        motivos = [m["descricao"] for m in client.get("/motivos-substituicao").json()]
        assert motivos == ["Correção de valor", "Alteração de rota", "Lançamento indevido", "Outro"]

    def test_veiculos_ativos(self, client, dados):
        placas = [v["placa"] for v in client.get("/veiculos", params={"ativos": True}).json()]
        assert "XYZ9K87" not in placas
        assert len(placas) == 2

    def test_cargas_disponiveis(self, client, dados):
        resposta = client.get("/cargas", params={"cod_veiculo": "CAR001", "data": DATA})
        assert [c["numero_carga"] for c in resposta.json()] == ["1001", "1002", "1003"]

    def test_km_sugerido(self, client, dados):
        resposta = client.get("/cargas/km", params={"cidade": "Contagem", "cod_veiculo": "CAR001"})
        assert resposta.json() == {"km": 200}


class TestCargasApi:
    def test_criar_carga_com_km_automatico(self, client, dados):
        resposta = client.post("/cargas", json={
            "numero_carga": "3001", "cidade": "Belo Horizonte", "data_cte": DATA, "cod_veiculo": "CAR001"
        })
        assert resposta.status_code == 201
        assert resposta.json()["km"] == 350

    def test_editar_carga_sem_motivo(self, client, dados):
        resposta = client.put(f"/cargas/{dados.A.id_carga}", json={"valor_cte": 10.0})
        assert resposta.status_code == 422
        assert resposta.json()["detail"] == "Informe o motivo da alteração da carga."

    def test_excluir_carga(self, client, dados):
        resposta = client.put(f"/cargas/{dados.A.id_carga}/excluir", json={"motivo": "Duplicada"})
        assert resposta.status_code == 200
        assert resposta.json()["excluido"] is True


class TestLancamentosApi:
    def test_calcular_previa(self, client, dados):
        resposta = client.post("/lancamentos/calcular", json=payload(dados, dados.A))
        corpo = resposta.json()
        assert resposta.status_code == 200
        assert corpo["calculo"]["valor_total"] == 2360.5
        assert corpo["calculo"]["cidade_base"] == "Belo Horizonte"
        assert corpo["aviso"] is None
        assert client.get("/lancamentos").json() == []

    def test_calcular_sem_parametro_avisa(self, client, dados):
        corpo = {"id_veiculo": dados.truck.id_veiculo, "data_frete": DATA, "ids_cargas": [dados.D.id_carga]}
        resposta = client.post("/lancamentos/calcular", json=corpo)
        assert resposta.json()["calculo"]["parametro_encontrado"] is False
        assert "valor base zerado" in resposta.json()["aviso"]

    def test_calcular_sem_cargas(self, client, dados):
        resposta = client.post("/lancamentos/calcular", json=payload(dados))
        assert resposta.status_code == 422
        assert resposta.json()["detail"] == "Selecione ao menos uma carga para calcular o frete."

    def test_carga_inexistente(self, client, dados):
        resposta = client.post("/lancamentos", json={**payload(dados, dados.A), "ids_cargas": [9999]})
        assert resposta.status_code == 422

    def test_carga_repetida_e_inexistente(self, client, dados):
        corpo = {**payload(dados), "ids_cargas": [dados.A.id_carga, dados.A.id_carga, 9999]}
        resposta = client.post("/lancamentos", json=corpo)
        assert resposta.status_code == 422
        assert resposta.json()["detail"] == "Cargas não encontradas ou excluídas: [9999]"
        assert client.get("/lancamentos").json() == []

    def test_carga_repetida_lancada_uma_vez(self, client, dados):
        resposta = client.post("/lancamentos", json=payload(dados, dados.A, dados.A))
        assert resposta.status_code == 201
        assert [c["id_carga"] for c in resposta.json()["lancamento"]["cargas"]] == [dados.A.id_carga]

    def test_carga_de_outro_veiculo(self, client, dados):
        resposta = client.post("/lancamentos", json=payload(dados, dados.A, dados.D))
        assert resposta.status_code == 422
        assert "1004" in resposta.json()["detail"]

    def test_fluxo_duplicidade(self, client, dados):
        primeiro = client.post("/lancamentos", json=payload(dados, dados.A, dados.B))
        assert primeiro.status_code == 201
        assert primeiro.json()["estado"] == "persistido"

        duplicado = client.post("/lancamentos", json=payload(dados, dados.A))
        assert duplicado.status_code == 409
        detalhe = duplicado.json()["detail"]
        assert detalhe["cargas_em_conflito"] == [dados.A.id_carga]
        assert "Correção de valor" in detalhe["motivos"]

        justificado = client.post("/lancamentos", json=payload(dados, dados.A, motivo="Alteração de rota"))
        assert justificado.status_code == 201
        assert justificado.json()["lancamento"]["motivo"] == "Alteração de rota"
        assert justificado.json()["cargas_em_conflito"] == [dados.A.id_carga]

    def test_usuario_padrao(self, client, dados):
        resposta = client.post("/lancamentos", json=payload(dados, dados.A))
        assert resposta.json()["lancamento"]["usuario"] == "usuario.logado"

    def test_editar(self, client, dados):
        criado = client.post("/lancamentos", json=payload(dados, dados.A, dados.B)).json()["lancamento"]

        sem_motivo = client.put(f"/lancamentos/{criado['id_lancamento']}", json={})
        assert sem_motivo.status_code == 422
        assert sem_motivo.json()["detail"] == "Informe o motivo da alteração para editar o lançamento."

        resposta = client.put(f"/lancamentos/{criado['id_lancamento']}", json={"motivo": "Correção de valor"})
        assert resposta.status_code == 200
        novo = resposta.json()["lancamento"]
        assert novo["id_lancamento"] != criado["id_lancamento"]
        assert novo["motivo"] == "Correção de valor"

        lancamentos = {l["id_lancamento"]: l for l in client.get("/lancamentos").json()}
        assert lancamentos[criado["id_lancamento"]]["excluido"] is True
        assert lancamentos[criado["id_lancamento"]]["motivo_exclusao"] == "Correção de valor"

    def test_excluir(self, client, dados):
        criado = client.post("/lancamentos", json=payload(dados, dados.A)).json()["lancamento"]
        url = f"/lancamentos/{criado['id_lancamento']}/excluir"

        sem_motivo = client.put(url, json={"motivo": ""})
        assert sem_motivo.status_code == 422
        assert sem_motivo.json()["detail"] == "Motivo é obrigatório para exclusão."

        resposta = client.put(url, json={"motivo": "Lançamento incorreto."})
        assert resposta.json()["excluido"] is True
        assert client.get("/lancamentos", params={"incluir_excluidos": False}).json() == []

    def test_excluir_inexistente(self, client, dados):
        resposta = client.put("/lancamentos/9999/excluir", json={"motivo": "Outro"})
        assert resposta.status_code == 404
