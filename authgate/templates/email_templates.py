"""
Transactional email templates.

Keyed by locale, then template name. Subjects and bodies use ``{{variable}}``
placeholders filled in by the notification service. Available variables:
link, display_name, ticket, redirect_to, locale, server_url, client_url.
"""

EMAIL_VERIFY = "email-verify"
EMAIL_CONFIRM_CHANGE = "email-confirm-change"
SIGNIN_PASSWORDLESS = "signin-passwordless"
PASSWORD_RESET = "password-reset"

EMAIL_TEMPLATES = {
    "en": {
        EMAIL_VERIFY: {
            "subject": "Verify your email",
            "text": (
                "Hi {{display_name}},\n\n"
                "Use the link below to verify your email address:\n"
                "{{link}}\n\n"
                "The link is valid for one hour."
            ),
            "html": (
                "<p>Hi {{display_name}},</p>"
                "<p>Use the link below to verify your email address:</p>"
                '<p><a href="{{link}}">Verify Email</a></p>'
                "<p>The link is valid for one hour.</p>"
            ),
        },
        EMAIL_CONFIRM_CHANGE: {
            "subject": "Confirm your new email",
            "text": (
                "Hi {{display_name}},\n\n"
                "Use the link below to confirm the change of your email address:\n"
                "{{link}}\n\n"
                "If you did not request this change, you can ignore this message."
            ),
            "html": (
                "<p>Hi {{display_name}},</p>"
                "<p>Use the link below to confirm the change of your email address:</p>"
                '<p><a href="{{link}}">Change Email</a></p>'
                "<p>If you did not request this change, you can ignore this message.</p>"
            ),
        },
        SIGNIN_PASSWORDLESS: {
            "subject": "Your sign-in link",
            "text": (
                "Hi {{display_name}},\n\n"
                "Use the link below to sign in:\n"
                "{{link}}\n\n"
                "The link can be used once and is valid for one hour."
            ),
            "html": (
                "<p>Hi {{display_name}},</p>"
                "<p>Use the link below to sign in:</p>"
                '<p><a href="{{link}}">Sign In</a></p>'
                "<p>The link can be used once and is valid for one hour.</p>"
            ),
        },
        PASSWORD_RESET: {
            "subject": "Reset your password",
            "text": (
                "Hi {{display_name}},\n\n"
                "Use the link below to sign in and choose a new password:\n"
                "{{link}}\n\n"
                "If you did not request a password reset, you can ignore this message."
            ),
            "html": (
                "<p>Hi {{display_name}},</p>"
                "<p>Use the link below to sign in and choose a new password:</p>"
                '<p><a href="{{link}}">Reset Password</a></p>'
                "<p>If you did not request a password reset, you can ignore this message.</p>"
            ),
        },
    },
    "fr": {
        EMAIL_VERIFY: {
            "subject": "Vérifiez votre adresse email",
            "text": (
                "Bonjour {{display_name}},\n\n"
                "Utilisez le lien ci-dessous pour vérifier votre adresse email :\n"
                "{{link}}\n\n"
                "Le lien est valable une heure."
            ),
            "html": (
                "<p>Bonjour {{display_name}},</p>"
                "<p>Utilisez le lien ci-dessous pour vérifier votre adresse email :</p>"
                '<p><a href="{{link}}">Vérifier l\'adresse email</a></p>'
                "<p>Le lien est valable une heure.</p>"
            ),
        },
        EMAIL_CONFIRM_CHANGE: {
            "subject": "Confirmez votre nouvelle adresse email",
            "text": (
                "Bonjour {{display_name}},\n\n"
                "Utilisez le lien ci-dessous pour confirmer le changement d'adresse email :\n"
                "{{link}}\n\n"
                "Si vous n'êtes pas à l'origine de cette demande, ignorez ce message."
            ),
            "html": (
                "<p>Bonjour {{display_name}},</p>"
                "<p>Utilisez le lien ci-dessous pour confirmer le changement d'adresse email :</p>"
                '<p><a href="{{link}}">Changer d\'adresse email</a></p>'
                "<p>Si vous n'êtes pas à l'origine de cette demande, ignorez ce message.</p>"
            ),
        },
        SIGNIN_PASSWORDLESS: {
            "subject": "Votre lien de connexion",
            "text": (
                "Bonjour {{display_name}},\n\n"
                "Utilisez le lien ci-dessous pour vous connecter :\n"
                "{{link}}\n\n"
                "Le lien est utilisable une seule fois pendant une heure."
            ),
            "html": (
                "<p>Bonjour {{display_name}},</p>"
                "<p>Utilisez le lien ci-dessous pour vous connecter :</p>"
                '<p><a href="{{link}}">Se connecter</a></p>'
                "<p>Le lien est utilisable une seule fois pendant une heure.</p>"
            ),
        },
        PASSWORD_RESET: {
            "subject": "Réinitialisez votre mot de passe",
            "text": (
                "Bonjour {{display_name}},\n\n"
                "Utilisez le lien ci-dessous pour vous connecter et choisir un nouveau mot de passe :\n"
                "{{link}}\n\n"
                "Si vous n'avez pas demandé de réinitialisation, ignorez ce message."
            ),
            "html": (
                "<p>Bonjour {{display_name}},</p>"
                "<p>Utilisez le lien ci-dessous pour vous connecter et choisir un nouveau mot de passe :</p>"
                '<p><a href="{{link}}">Réinitialiser le mot de passe</a></p>'
                "<p>Si vous n'avez pas demandé de réinitialisation, ignorez ce message.</p>"
            ),
        },
    },
}
