"""
Localized user-facing strings.

pt-BR is the platform's own language; en is the fallback.
"""

from typing import Any

DEFAULT_LOCALE = "pt-BR"
FALLBACK_LOCALE = "en"

CATALOG: dict[str, dict[str, str]] = {
    "pt-BR": {
        "validation.required": "Preencha todos os campos",
        "validation.password": "Por favor, insira a senha",
        "validation.private_key": "Por favor, insira a chave privada",
        "auth.missing_email": "Usuário não autenticado ou email não disponível",
        "transport.connected": "✅ Conectado ao servidor",
        "transport.disconnected": "❌ Desconectado do servidor",
        "network.error": "Erro de conexão com o servidor",
        "vps.connected": "🔗 Conectado ao VPS: {host}",
        "vps.step_start": "▶️ {name}",
        "vps.step_complete": "✅ {name} - Concluído",
        "vps.step_error": "❌ {name} - Erro: {error}",
        "vps.setup_complete": "🎉 Configuração do VPS concluída com sucesso!",
        "vps.setup_complete_id": "📍 VPS ID: {vps_id}",
        "vps.setup_complete_host": "🌐 Host: {host}",
        "vps.setup_error": "💥 Erro na configuração do VPS: {error}",
        "vps.started": "Setup do VPS iniciado! Acompanhe o progresso no terminal.",
        "vps.start_failed": "Erro ao iniciar configuração do VPS",
        "vps.success": "VPS configurado com sucesso!",
        "vps.failed": "Erro na configuração do VPS",
        "vps.error_toast": "Erro na configuração do VPS: {error}",
        "vps.test_ok": "Conexão estabelecida com sucesso!",
        "vps.test_failed": "Falha na conexão",
        "vps.test_error": "Erro ao testar conexão",
        "simple_vps.connected": "🤖 IA trabalhando: Conectado ao servidor...",
        "simple_vps.started": "🤖 IA trabalhando: Iniciando configuração...",
        "simple_vps.started_toast": "Configuração iniciada! Aguarde...",
        "simple_vps.complete": "✅ Servidor configurado com sucesso!",
        "simple_vps.failed": "❌ Erro na configuração do servidor",
        "simple_vps.start_failed": "Erro ao configurar VPS",
        "simple_vps.error_toast": "Erro: {error}",
        "blog.connected": "🤖 IA trabalhando: Conectado ao servidor...",
        "blog.started": "🤖 IA trabalhando: Iniciando criação do blog...",
        "blog.started_toast": "Criação do blog iniciada! Aguarde...",
        "blog.created": "🌐 Blog criado: {url}",
        "blog.complete": "✅ Blog criado com sucesso!",
        "blog.failed": "❌ Erro na criação do blog",
        "blog.start_failed": "Erro ao criar blog",
        "blog.error_toast": "Erro: {error}",
        "close.confirm": "⚠️ A operação está em andamento. Fechar agora pode interromper o processo. Deseja continuar?",
        "terminal.waiting": "Aguardando início da configuração...",
        "terminal.complete": "Setup concluído com sucesso!",
        "terminal.error": "Erro na configuração",
        "resource.error": "Erro ao processar solicitação",
        "sites.load_failed": "Erro ao carregar sites WordPress",
        "sites.added": "Site WordPress adicionado!",
        "sites.updated": "Site WordPress atualizado!",
        "sites.deleted": "Site WordPress removido",
        "sites.default_set": "Site padrão definido",
        "sites.test_ok": "Conexão com o WordPress bem-sucedida!",
        "sites.save_failed": "Erro ao salvar site WordPress",
        "sites.delete_failed": "Erro ao remover site WordPress",
        "sites.test_failed": "Erro ao testar conexão com o WordPress",
        "vps_config.saved": "Configuração do VPS salva",
        "vps_config.deleted": "Configuração do VPS removida",
        "vps_config.load_failed": "Erro ao carregar configurações de VPS",
        "vps_config.save_failed": "Erro ao salvar configuração do VPS",
        "vps_config.delete_failed": "Erro ao remover configuração do VPS",
        "features.load_failed": "Erro ao carregar funcionalidades",
        "notifications.load_failed": "Erro ao carregar notificações",
        "notifications.marked_read": "Notificação marcada como lida",
        "notifications.all_read": "Todas as notificações marcadas como lidas",
        "notifications.deleted": "Notificação removida",
        "notifications.update_failed": "Erro ao atualizar notificações",
        "network.load_failed": "Erro ao carregar usuários",
        "connection.request_sent": "Solicitação de conexão enviada!",
        "connection.request_failed": "Erro ao enviar solicitação de conexão",
        "connection.accepted": "Conexão aceita!",
        "connection.removed": "Conexão removida",
        "connection.blocked": "Usuário bloqueado",
        "connection.update_failed": "Erro ao atualizar conexão",
        "domain.check_failed": "Erro ao verificar disponibilidade do domínio",
    },
    "en": {
        "validation.required": "Please fill in all fields",
        "validation.password": "Please enter the password",
        "validation.private_key": "Please enter the private key",
        "auth.missing_email": "User not authenticated or email unavailable",
        "transport.connected": "✅ Connected to server",
        "transport.disconnected": "❌ Disconnected from server",
        "network.error": "Could not reach the server",
        "vps.connected": "🔗 Connected to VPS: {host}",
        "vps.step_start": "▶️ {name}",
        "vps.step_complete": "✅ {name} - Done",
        "vps.step_error": "❌ {name} - Error: {error}",
        "vps.setup_complete": "🎉 VPS setup finished successfully!",
        "vps.setup_complete_id": "📍 VPS ID: {vps_id}",
        "vps.setup_complete_host": "🌐 Host: {host}",
        "vps.setup_error": "💥 VPS setup failed: {error}",
        "vps.started": "VPS setup started! Follow the progress in the terminal.",
        "vps.start_failed": "Could not start VPS setup",
        "vps.success": "VPS configured successfully!",
        "vps.failed": "VPS setup failed",
        "vps.error_toast": "VPS setup failed: {error}",
        "vps.test_ok": "Connection established!",
        "vps.test_failed": "Connection failed",
        "vps.test_error": "Error while testing the connection",
        "simple_vps.connected": "🤖 Working: connected to server...",
        "simple_vps.started": "🤖 Working: starting setup...",
        "simple_vps.started_toast": "Setup started! Please wait...",
        "simple_vps.complete": "✅ Server configured successfully!",
        "simple_vps.failed": "❌ Server setup failed",
        "simple_vps.start_failed": "Could not configure VPS",
        "simple_vps.error_toast": "Error: {error}",
        "blog.connected": "🤖 Working: connected to server...",
        "blog.started": "🤖 Working: starting blog creation...",
        "blog.started_toast": "Blog creation started! Please wait...",
        "blog.created": "🌐 Blog created: {url}",
        "blog.complete": "✅ Blog created successfully!",
        "blog.failed": "❌ Blog creation failed",
        "blog.start_failed": "Could not create blog",
        "blog.error_toast": "Error: {error}",
        "close.confirm": "⚠️ The operation is in progress. Closing now may interrupt the process. Continue?",
        "terminal.waiting": "Waiting for setup to start...",
        "terminal.complete": "Setup finished successfully!",
        "terminal.error": "Setup failed",
        "resource.error": "Could not process the request",
        "sites.load_failed": "Could not load WordPress sites",
        "sites.added": "WordPress site added!",
        "sites.updated": "WordPress site updated!",
        "sites.deleted": "WordPress site removed",
        "sites.default_set": "Default site set",
        "sites.test_ok": "WordPress connection succeeded!",
        "sites.save_failed": "Could not save WordPress site",
        "sites.delete_failed": "Could not remove WordPress site",
        "sites.test_failed": "Could not test the WordPress connection",
        "vps_config.saved": "VPS configuration saved",
        "vps_config.deleted": "VPS configuration removed",
        "vps_config.load_failed": "Could not load VPS configurations",
        "vps_config.save_failed": "Could not save VPS configuration",
        "vps_config.delete_failed": "Could not remove VPS configuration",
        "features.load_failed": "Could not load features",
        "notifications.load_failed": "Could not load notifications",
        "notifications.marked_read": "Notification marked as read",
        "notifications.all_read": "All notifications marked as read",
        "notifications.deleted": "Notification removed",
        "notifications.update_failed": "Could not update notifications",
        "network.load_failed": "Could not load users",
        "connection.request_sent": "Connection request sent!",
        "connection.request_failed": "Could not send connection request",
        "connection.accepted": "Connection accepted!",
        "connection.removed": "Connection removed",
        "connection.blocked": "User blocked",
        "connection.update_failed": "Could not update connection",
        "domain.check_failed": "Could not check domain availability",
    },
}


def translate(key: str, locale: str = DEFAULT_LOCALE, **params: Any) -> str:
    """Look up key for locale, falling back to English and then to the key itself."""
    template = CATALOG.get(locale, {}).get(key)
    if template is None:
        template = CATALOG[FALLBACK_LOCALE].get(key, key)
    if params:
        try:
            return template.format(**params)
        except (KeyError, IndexError):
            return template
    return template
