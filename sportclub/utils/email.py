import boto3
from botocore.exceptions import ClientError, BotoCoreError
from flask import current_app


def get_ses_client():
    return boto3.client('ses',
        region_name=current_app.config['AWS_SES_REGION'],
        aws_access_key_id=current_app.config['AWS_SES_ACCESS_KEY'],
        aws_secret_access_key=current_app.config['AWS_SES_SECRET_KEY']
    )


def verification_url(token):
    return f"{current_app.config['APP_URL'].rstrip('/')}/verify-email?token={token}"


def send_verification_email(to_email, name, token):
    """
    Send the account confirmation link.

    Returns:
        tuple: (success, message_id or error text)
    """
    brand = current_app.config.get('DEFAULT_CLUB_NAME', 'G1Club')
    verify_url = verification_url(token)

    subject = f'Confirmez votre adresse email - {brand}'
    body_html = f"""
    <html>
        <body>
            <h2>Bonjour {name},</h2>
            <p>Merci de vous être inscrit sur <strong>{brand}</strong>.</p>
            <p>Pour activer votre compte, confirmez votre adresse email :</p>
            <p><a href="{verify_url}">Confirmer mon email</a></p>
            <p>Si vous n'avez pas créé de compte sur {brand}, ignorez cet email.</p>
        </body>
    </html>
    """

    body_text = f"""
    Bonjour {name},

    Merci de vous être inscrit sur {brand}.
    Pour activer votre compte, ouvrez le lien suivant :
    {verify_url}

    Si vous n'avez pas créé de compte sur {brand}, ignorez cet email.
    """

    try:
        ses_client = get_ses_client()
        response = ses_client.send_email(
            Source=current_app.config['AWS_SES_SENDER'],
            Destination={
                'ToAddresses': [to_email]
            },
            Message={
                'Subject': {
                    'Data': subject
                },
                'Body': {
                    'Text': {
                        'Data': body_text
                    },
                    'Html': {
                        'Data': body_html
                    }
                }
            }
        )
        current_app.logger.info(f"Verification email sent to {to_email}")
        return True, response['MessageId']

    except ClientError as e:
        current_app.logger.error(f"Error sending email to {to_email}: {e.response['Error']['Message']}")
        return False, str(e)
    except BotoCoreError as e:
        current_app.logger.error(f"Error sending email to {to_email}: {str(e)}")
        return False, str(e)
