def sanitizar_erro(erro: Exception) -> str:
    """
    Nunca expõe SQL, stack traces ou dados internos ao usuário.
    Retorna sempre uma mensagem limpa em português.
    """
    msg = str(erro).lower()

    # Erros de conexão (banco ou serviço externo)
    if any(kw in msg for kw in ("connection", "timeout", "refused", "unreachable", "could not connect")):
        return "Erro de conexão com o banco de dados. Tente novamente em alguns instantes."

    # Erros de SQL / banco
    if any(kw in msg for kw in ("sqlalchemy", "psycopg", "no such table", "relation", "column",
                                  "syntax error", "background on this error", "select ")):
        return (
            "Ocorreu um erro ao consultar os dados no banco. "
            "Tente novamente ou entre em contato com o administrador."
        )

    return "Erro interno de processamento. Tente novamente ou entre em contato com o administrador."
