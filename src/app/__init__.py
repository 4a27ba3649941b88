"""App — orquestração e infraestrutura do endpoint de Flow.

Subpastas:
- bootstrap/: composition root (logging, validação de settings, wiring)
- infra/crypto/: codec do envelope RSA-OAEP + AES-GCM
- infra/http/: cliente HTTP de saída
- services/: respostas do Flow, extração de campos, encaminhamento
- observability/: correlation_id para logs estruturados

Padrão: app executa; api adapta; config configura.
"""
