"""Configuração do serviço: settings por domínio e logging estruturado."""
