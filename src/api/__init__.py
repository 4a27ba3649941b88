"""API — camada de borda HTTP.

Responsabilidades:
- Receber requests do WhatsApp Flows (data exchange)
- Validar assinatura e detectar probes de liveness
- Mapear erros do codec para respostas HTTP

NÃO PODE conter: lógica criptográfica (fica em app/infra/crypto).
"""
